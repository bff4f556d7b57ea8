"""
Ecommerce skill bundle.

Online retail selling products direct to consumers. Success is measured by
revenue and return on ad spend; product and category pages are the critical
organic assets.
"""

from backend.models.enums import BusinessType, ImpactLevel, PriorityLevel
from backend.skills.types import (
    AnalysisPattern,
    ConflictRule,
    ContentSignal,
    DirectorFiltering,
    DirectorSkill,
    ImpactWeights,
    IssueDefinition,
    KPIDefinition,
    KPISet,
    OrganicBenchmarks,
    OrganicSkill,
    PagePattern,
    PaidBenchmarks,
    PaidSkill,
    PrioritizationRule,
    PriorityBoost,
    PriorityRule,
    PromptFragments,
    RecommendationTypes,
    ResearcherSkill,
    SchemaExtraction,
    SchemaRules,
    ScoutMetrics,
    ScoutSkill,
    ScoutThresholds,
    SignalPattern,
    SkillBundle,
    SynergyRule,
    ThresholdSet,
    WorkedExample,
)


VERSION = "1.0.0"


SCOUT = ScoutSkill(
    version=VERSION,
    thresholds=ScoutThresholds(
        high_spend_threshold=500,
        low_roas_threshold=2.0,
        cannibalization_position=5,
        high_bounce_rate_threshold=65,
        low_ctr_threshold=1.5,
        min_impressions_for_analysis=100,
    ),
    keyword_rules=(
        PriorityRule(
            id="high-spend-low-roas",
            name="High Spend, Low ROAS",
            description="Keywords with significant spend but poor return on ad spend",
            condition="spend > highSpendThreshold AND roas < lowRoasThreshold",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="cannibalization-risk",
            name="Paid/Organic Cannibalization",
            description="Paying for clicks on keywords where organic already ranks well",
            condition="organicPosition <= cannibalizationPosition AND spend > 100",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="brand-vs-generic",
            name="Brand Term Efficiency",
            description="Brand keywords with high spend that could rely on organic",
            condition="isBrandTerm AND spend > 200 AND organicPosition <= 3",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="high-intent-low-conversion",
            name="High Intent, Low Conversion",
            description="Product-specific queries not converting",
            condition="isProductQuery AND clicks > 50 AND conversions < 2",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="growth-potential",
            name="Growth Opportunity",
            description="Profitable keywords that could scale with more budget",
            condition="roas > 4 AND conversions > 5",
            priority=PriorityLevel.MEDIUM,
        ),
        PriorityRule(
            id="organic-gap",
            name="Organic Gap on Converting Term",
            description="Converting paid keywords with weak organic presence",
            condition="conversions > 5 AND (organicPosition > 10 OR NOT hasOrganic)",
            priority=PriorityLevel.MEDIUM,
        ),
    ),
    page_rules=(
        PriorityRule(
            id="high-spend-product-page",
            name="High Spend Product Page",
            description="Product pages receiving significant paid traffic",
            condition="isProductPage AND paidSpend > 300",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="poor-organic-product",
            name="Poor Organic Visibility",
            description="Product pages with weak organic presence",
            condition="isProductPage AND organicPosition > 20",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="high-bounce-landing",
            name="High Bounce Landing Page",
            description="Landing pages with excessive bounce rates",
            condition="bounceRate > highBounceRateThreshold AND sessions > 100",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="category-page-opportunity",
            name="Category Page Opportunity",
            description="Category pages that could capture more organic clicks",
            condition="isCategoryPage AND impressions > 1000 AND ctr < lowCtrThreshold",
            priority=PriorityLevel.MEDIUM,
        ),
    ),
    signals=(
        SignalPattern(name="isProductQuery", target="query",
                      pattern=r"\b(buy|price|prices|cheap|sale|deal|deals|discount|order|shop)\b"),
        SignalPattern(name="isProductPage", target="url", pattern=r"/(product|products|p|item)/"),
        SignalPattern(name="isCategoryPage", target="url", pattern=r"/(category|categories|c|collection|collections)/"),
    ),
    metrics=ScoutMetrics(
        include=("spend", "revenue", "roas", "conversions", "conversionValue", "ctr", "cpc",
                 "impressions", "impressionShare", "organicPosition", "bounceRate"),
        exclude=(),
        primary=("roas", "conversions"),
    ),
    max_battleground_keywords=25,
    max_critical_pages=15,
)


RESEARCHER = ResearcherSkill(
    version=VERSION,
    required_competitive_metrics=("impressionShare", "lostImpressionShareRank", "lostImpressionShareBudget"),
    optional_competitive_metrics=("topOfPageRate", "absTopOfPageRate", "overlapRate", "outrankingShare"),
    priority_boosts=(
        PriorityBoost(
            metric="impressionShare",
            condition="impressionShare < 30 AND conversions > 10",
            boost=2.0,
            reason="High-converting keyword with significant share opportunity",
        ),
        PriorityBoost(
            metric="lostImpressionShareBudget",
            condition="lostImpressionShareBudget > 40 AND roas > 3",
            boost=1.5,
            reason="Profitable keyword limited by budget",
        ),
        PriorityBoost(
            metric="topOfPageRate",
            condition="topOfPageRate < 50 AND isProductQuery",
            boost=1.3,
            reason="Product query not reaching top positions",
        ),
    ),
    schema_extraction=SchemaExtraction(
        look_for=("Product", "Offer", "AggregateOffer", "AggregateRating", "Review",
                  "BreadcrumbList", "Organization", "WebSite"),
        flag_if_present=("Article", "NewsArticle"),
        flag_if_missing=("Product", "BreadcrumbList"),
    ),
    content_signals=(
        ContentSignal(id="price-display", name="Price Display",
                      selector='[class*="price"], [data-price]', importance="critical"),
        ContentSignal(id="add-to-cart", name="Add to Cart Button",
                      selector='[class*="add-to-cart"], [data-action="add-to-cart"]', importance="critical"),
        ContentSignal(id="product-images", name="Product Images",
                      selector='.product-image, .product-gallery, [class*="product-photo"]', importance="high"),
        ContentSignal(id="reviews-section", name="Customer Reviews",
                      selector='.reviews, [class*="review"]', importance="high"),
        ContentSignal(id="shipping-info", name="Shipping Information",
                      selector='[class*="shipping"], [class*="delivery"]', importance="medium"),
    ),
    page_patterns=(
        PagePattern(pattern=r"/product/|/p/|/item/|/shop/.+/.+", page_type="product", confidence=0.9),
        PagePattern(pattern=r"/category/|/c/|/collection/|/shop/?$", page_type="category", confidence=0.85),
        PagePattern(pattern=r"/cart|/basket", page_type="cart", confidence=0.95),
        PagePattern(pattern=r"/checkout|/payment", page_type="checkout", confidence=0.95),
        PagePattern(pattern=r"/sale|/clearance|/deals", page_type="promotion", confidence=0.8),
    ),
    default_page_type="landing",
    page_confidence_threshold=0.7,
    min_keywords_with_competitive_data=10,
    min_pages_with_content=5,
    max_fetch_timeout_seconds=15.0,
    max_concurrent_fetches=5,
)


PAID = PaidSkill(
    version=VERSION,
    business_model=(
        "Online retail business selling products directly to consumers. Revenue comes from "
        "product sales; success is measured by transaction volume, average order value and ROAS."
    ),
    conversion_definition="A conversion is a completed purchase; conversion value is the order total.",
    customer_journey=(
        "Research (generic searches) -> Consideration (product and comparison searches) -> "
        "Purchase (brand/product searches, Shopping ads) -> Repeat (remarketing)"
    ),
    kpis=KPISet(
        primary=(
            KPIDefinition(metric="roas", importance="critical", target_direction="higher", benchmark=4.0,
                          description="Revenue generated per dollar of ad spend",
                          business_context="Below 2x is typically unprofitable."),
            KPIDefinition(metric="revenue", importance="critical", target_direction="higher",
                          description="Revenue attributed to paid search"),
        ),
        secondary=(
            KPIDefinition(metric="conversions", importance="high", target_direction="higher",
                          description="Completed transactions"),
            KPIDefinition(metric="aov", importance="high", target_direction="higher", benchmark=75,
                          description="Average order value"),
            KPIDefinition(metric="impressionShare", importance="medium", target_direction="higher",
                          description="Share of available impressions captured"),
        ),
        irrelevant=("cpl", "leadQuality", "mrr"),
    ),
    benchmarks=PaidBenchmarks(
        ctr=ThresholdSet(excellent=4.0, good=2.5, average=1.5, poor=0.8),
        conversion_rate=ThresholdSet(excellent=4.0, good=2.5, average=1.5, poor=0.8),
        cpc=ThresholdSet(excellent=0.5, good=1.0, average=1.5, poor=2.5),
        roas=ThresholdSet(excellent=6.0, good=4.0, average=2.5, poor=1.5),
        cost_per_conversion=ThresholdSet(excellent=15, good=25, average=40, poor=60),
    ),
    key_patterns=(
        AnalysisPattern(id="brand-efficiency", name="Brand Term Efficiency",
                        indicators=("Brand ROAS > 10", "Strong organic rank on brand terms"),
                        recommendation="Test lower brand bids where organic already captures the click"),
        AnalysisPattern(id="category-expansion", name="Category Expansion Opportunity",
                        indicators=("Good ROAS on category terms", "Low impression share"),
                        recommendation="Increase budget and bids on performing category keywords"),
    ),
    anti_patterns=(
        AnalysisPattern(id="broad-match-bleed", name="Broad Match Budget Bleed",
                        indicators=("High spend on broad match", "Low conversion rate vs exact/phrase"),
                        recommendation="Tighten match types and add negative keywords"),
        AnalysisPattern(id="mobile-mismatch", name="Mobile Experience Gap",
                        indicators=("High mobile impressions", "Low mobile conversion rate"),
                        recommendation="Audit mobile product pages and apply mobile bid adjustments"),
    ),
    prompt=PromptFragments(
        role_context=(
            "You are an expert ecommerce PPC strategist analyzing Google Ads performance for an online "
            "retail business. Focus on maximizing return on ad spend while growing profitable revenue."
        ),
        analysis_instructions=(
            "1. ROAS OPTIMIZATION: find keywords with below-target ROAS dragging down performance.\n"
            "2. REVENUE GROWTH: find profitable keywords constrained by budget or rank.\n"
            "3. SHOPPING vs SEARCH: product queries often perform better on Shopping.\n"
            "4. COMPETITIVE POSITION: use impression share and auction data to find where competitors win.\n"
            "Quantify each issue in revenue or cost savings."
        ),
        output_guidance=(
            "Lead with the business impact, name the exact keywords or campaigns to change and give a "
            "target for success. Prioritize by revenue impact."
        ),
        constraints=(
            "Recommend ROAS targets appropriate for the product category",
            "Do not recommend pausing campaigns without suggesting reallocation",
            "Factor in seasonality; Q4 may justify higher spend at lower ROAS",
        ),
    ),
    examples=(
        WorkedExample(
            scenario="High-spend keyword with poor ROAS",
            data='"wireless headphones" - $2,400/month spend, 1.2 ROAS, $45 CPC',
            recommendation="Reduce bids 30% and move budget to Shopping where the category returns 3.8 ROAS.",
            reasoning="Generic product terms convert better with visual Shopping ads.",
        ),
    ),
    recommendation_types=RecommendationTypes(
        prioritize=("budget-reallocation", "bid-optimization", "shopping-expansion", "negative-keywords"),
        deprioritize=("brand-campaign-changes", "complete-restructure"),
        exclude=("platform-migration", "attribution-model-change"),
    ),
    max_recommendations=8,
)


ORGANIC = OrganicSkill(
    version=VERSION,
    site_type="Ecommerce website with a product catalog, category pages and transactional intent.",
    primary_goal="Drive organic traffic that converts to purchases.",
    content_strategy="Unique product descriptions, helpful category copy and buying guides.",
    schema_rules=SchemaRules(
        required=("Product", "BreadcrumbList", "Organization"),
        recommended=("AggregateRating", "Review", "Offer", "WebSite"),
        invalid=("Article", "LocalBusiness"),
    ),
    kpis=KPISet(
        primary=(
            KPIDefinition(metric="organicRevenue", importance="critical", target_direction="higher",
                          description="Revenue attributed to organic search"),
            KPIDefinition(metric="productPageVisibility", importance="critical", target_direction="lower",
                          benchmark=10, description="Average position of product pages"),
        ),
        secondary=(
            KPIDefinition(metric="organicCtr", importance="high", target_direction="higher",
                          description="Click-through rate from search results"),
        ),
        irrelevant=("leadGeneration", "formSubmissions"),
    ),
    benchmarks=OrganicBenchmarks(
        organic_ctr=ThresholdSet(excellent=5.0, good=3.0, average=2.0, poor=1.0),
        bounce_rate=ThresholdSet(excellent=35, good=45, average=55, poor=70),
        avg_position=ThresholdSet(excellent=5, good=10, average=20, poor=35),
    ),
    technical_checks=(
        "Canonicals on product variants and filtered views",
        "Crawlable category pagination",
        "Mobile product page experience",
        "Core Web Vitals",
    ),
    prompt=PromptFragments(
        role_context=(
            "You are an expert ecommerce SEO strategist analyzing organic search performance for an online "
            "retail website. Focus on product page visibility, category rankings and organic revenue."
        ),
        analysis_instructions=(
            "1. Check product and category pages for required structured data.\n"
            "2. Flag thin category and product content.\n"
            "3. Identify pages where paid spend is compensating for weak organic rank."
        ),
        output_guidance="Give page-level actions with concrete, checkable steps.",
        constraints=(
            "Never recommend LocalBusiness schema for an online-only store",
            "Do not recommend link-building campaigns",
        ),
    ),
    examples=(
        WorkedExample(
            scenario="Category page with thin content",
            data="/category/headphones - position 15, no copy above the product grid",
            recommendation="Add a 200-300 word intro with links to subcategories.",
            reasoning="Category pages need topical context to rank for head terms.",
        ),
    ),
    critical_issues=(
        IssueDefinition(id="duplicate-content-filters",
                        pattern="Multiple URLs for the same content via filter parameters",
                        recommendation="Canonicalize filter combinations"),
    ),
    false_positives=("Out of stock products with noindex are often intentional",),
    recommendation_types=RecommendationTypes(
        prioritize=("schema-implementation", "content-expansion", "technical-fixes", "internal-linking"),
        deprioritize=("site-architecture-overhaul", "cms-migration"),
        exclude=("link-building-tactics", "ppc-recommendations"),
    ),
    max_recommendations=8,
)


DIRECTOR = DirectorSkill(
    version=VERSION,
    business_priorities=(
        "Maximize return on ad spend",
        "Grow profitable revenue",
        "Reduce wasted ad spend",
        "Improve organic visibility for product pages",
    ),
    success_metrics=("Total revenue (paid + organic)", "Blended ROAS", "Organic traffic growth"),
    executive_framing=(
        "Ecommerce leadership wants dollar amounts: revenue gains, cost savings and efficiency. "
        "Balance quick wins with strategic initiatives."
    ),
    conflict_rules=(
        ConflictRule(
            id="paid-vs-organic-cannibalization",
            paid_signal="Maintain spend on branded/product keywords",
            organic_signal="Strong organic rankings for the same keywords",
            resolution="Test a 20% paid reduction on keywords ranking #1-3 organically while watching total traffic.",
            resulting_type="hybrid",
        ),
        ConflictRule(
            id="landing-page-conflict",
            paid_signal="Dedicated PPC landing page",
            organic_signal="Optimize the existing product/category page",
            resolution="Keep the existing page for organic; build a PPC variant only if conversion rate justifies it.",
            resulting_type="hybrid",
        ),
        ConflictRule(
            id="budget-allocation-conflict",
            paid_signal="Increase budget on performing campaigns",
            organic_signal="Invest in content and technical SEO",
            resolution="Paid for immediate revenue, SEO for sustainable growth; start 70/30 and move toward 50/50.",
            resulting_type="hybrid",
        ),
    ),
    synergy_rules=(
        SynergyRule(
            id="search-data-sharing",
            paid_condition="High-converting search queries identified",
            organic_condition="Content gaps in product descriptions",
            combined_recommendation="Use converting PPC search terms in product page titles and descriptions.",
        ),
        SynergyRule(
            id="schema-rich-results",
            paid_condition="Product ads showing price and reviews",
            organic_condition="Product schema implementation needed",
            combined_recommendation="Implement Product schema so organic results match the paid ad format.",
        ),
    ),
    prioritization=(
        PrioritizationRule(condition="Quantified revenue impact > $5,000/month", adjustment="boost",
                           factor=2.0, reason="High revenue impact"),
        PrioritizationRule(condition="Requires development resources", adjustment="reduce",
                           factor=0.7, reason="Development dependency delays results"),
        PrioritizationRule(condition="Affects checkout flow", adjustment="require",
                           factor=1.0, reason="Checkout issues directly impact revenue"),
        PrioritizationRule(condition="Purely cosmetic", adjustment="exclude",
                           factor=0.0, reason="Focus on performance-impacting changes"),
    ),
    filtering=DirectorFiltering(
        max_recommendations=10,
        min_impact_threshold=ImpactLevel.MEDIUM,
        impact_weights=ImpactWeights(revenue=0.35, cost=0.25, effort=0.20, risk=0.20),
        must_include=("checkout", "Product schema"),
        must_exclude=("schema:ProfessionalService", "schema:LocalBusiness", "type:lead-form"),
    ),
    focus_areas=(
        "Revenue opportunity from paid search optimization",
        "Cost savings from efficiency improvements",
        "Organic traffic growth potential",
    ),
    max_highlights=5,
    role_context=(
        "You are a senior digital marketing director synthesizing paid and organic search recommendations "
        "for an ecommerce business. You report to leadership who care about sales, margins and growth."
    ),
    synthesis_instructions=(
        "1. IDENTIFY SYNERGIES where paid and organic reinforce each other.\n"
        "2. RESOLVE CONFLICTS using the conflict table below.\n"
        "3. PRIORITIZE BY REVENUE IMPACT; quick wins first.\n"
        "4. CONSOLIDATE DUPLICATES into one comprehensive recommendation."
    ),
    constraints=(
        "Do not recommend platform migrations or CMS changes",
        "Quantify impact in revenue or cost terms where data supports it",
    ),
)


BUNDLE = SkillBundle(
    business_type=BusinessType.ECOMMERCE,
    version=VERSION,
    scout=SCOUT,
    researcher=RESEARCHER,
    paid=PAID,
    organic=ORGANIC,
    director=DIRECTOR,
)

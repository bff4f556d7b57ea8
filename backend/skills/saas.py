"""
SaaS skill bundle.

Subscription software acquiring trials and demos. Customer acquisition cost
and trial volume drive prioritization; feature, pricing, integration and
comparison pages are the pages that matter.
"""

from backend.models.enums import BusinessType, ImpactLevel, PriorityLevel
from backend.skills.types import (
    AnalysisPattern,
    ConflictRule,
    ContentSignal,
    DirectorFiltering,
    DirectorSkill,
    ImpactWeights,
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
        low_roas_threshold=0,
        cannibalization_position=5,
        high_bounce_rate_threshold=60,
        low_ctr_threshold=2.5,
        min_impressions_for_analysis=75,
    ),
    keyword_rules=(
        PriorityRule(
            id="high-cac-keywords",
            name="Acquisition Cost Above Target",
            description="Keywords acquiring trials above the target acquisition cost",
            condition="cac > targetCac AND conversions > 2",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="high-spend-low-trials",
            name="High Spend, Low Trials",
            description="Keywords consuming budget without producing trials or demos",
            condition="spend > highSpendThreshold AND conversions < 3",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="cannibalization-risk",
            name="Paid/Organic Overlap",
            description="Paying for clicks where organic already ranks well",
            condition="organicPosition <= cannibalizationPosition AND spend > 150",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="competitor-comparison",
            name="Competitor Comparison Terms",
            description="Competitor and alternative queries with meaningful spend",
            condition="(isCompetitorTerm OR isComparisonQuery) AND spend > 100",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="feature-keyword-gaps",
            name="Feature Keyword Gap",
            description="Feature queries with little paid coverage",
            condition="isFeatureQuery AND spend < 50 AND impressions > 200",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="integration-keywords",
            name="Integration Keywords",
            description="Integration queries with search demand",
            condition="isIntegrationQuery AND impressions > 200",
            priority=PriorityLevel.MEDIUM,
        ),
    ),
    page_rules=(
        PriorityRule(
            id="high-spend-feature-page",
            name="High Spend Feature Page",
            description="Feature pages receiving significant paid traffic",
            condition="isFeaturePage AND paidSpend > 300",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="poor-converting-pricing",
            name="Poor Converting Pricing Page",
            description="Pricing pages with traffic but few sign-ups",
            condition="isPricingPage AND sessions > 200 AND conversionRate < 3",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="high-bounce-landing",
            name="High Bounce Landing Page",
            description="Landing pages with excessive bounce rates",
            condition="bounceRate > highBounceRateThreshold AND sessions > 100",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="integration-page-opportunity",
            name="Integration Page Opportunity",
            description="Integration pages with visibility but a weak click-through rate",
            condition="isIntegrationPage AND impressions > 300 AND ctr < lowCtrThreshold",
            priority=PriorityLevel.MEDIUM,
        ),
        PriorityRule(
            id="comparison-page-gap",
            name="Comparison Page Ranking Gap",
            description="Comparison pages ranking below page one",
            condition="isComparisonPage AND position > 10",
            priority=PriorityLevel.MEDIUM,
        ),
    ),
    signals=(
        SignalPattern(name="isFeatureQuery", target="query",
                      pattern=r"\b(software|tool|app|platform|feature|automation|dashboard)\b"),
        SignalPattern(name="isIntegrationQuery", target="query", pattern=r"\b(integration|integrate|connect|api|plugin)\b"),
        SignalPattern(name="isComparisonQuery", target="query", pattern=r"\b(vs|versus|alternative|alternatives|compare)\b"),
        SignalPattern(name="isFeaturePage", target="url", pattern=r"/(features?|product)(/|$)"),
        SignalPattern(name="isPricingPage", target="url", pattern=r"/(pricing|plans)(/|$)"),
        SignalPattern(name="isIntegrationPage", target="url", pattern=r"/(integrations?|apps|marketplace)(/|$)"),
        SignalPattern(name="isComparisonPage", target="url", pattern=r"/(compare|vs|alternatives?)(/|-|$)"),
    ),
    metrics=ScoutMetrics(
        include=("spend", "conversions", "cac", "conversionRate", "ctr", "cpc", "impressions",
                 "organicPosition", "bounceRate"),
        exclude=("roas", "revenue", "conversionValue"),
        primary=("conversions", "cac", "conversionRate"),
    ),
    max_battleground_keywords=25,
    max_critical_pages=15,
)


RESEARCHER = ResearcherSkill(
    version=VERSION,
    required_competitive_metrics=("impressionShare", "lostImpressionShareRank", "overlapRate"),
    optional_competitive_metrics=("outrankingShare", "topOfPageRate"),
    priority_boosts=(
        PriorityBoost(
            metric="overlapRate",
            condition="overlapRate > 50 AND isComparisonQuery",
            boost=1.6,
            reason="Heavy competitor overlap on a comparison query",
        ),
        PriorityBoost(
            metric="impressionShare",
            condition="impressionShare < 40 AND conversions > 5",
            boost=1.5,
            reason="Trial-generating keyword with share headroom",
        ),
    ),
    schema_extraction=SchemaExtraction(
        look_for=("SoftwareApplication", "Organization", "FAQPage", "Offer", "AggregateRating",
                  "BreadcrumbList", "HowTo"),
        flag_if_present=("LocalBusiness", "Product"),
        flag_if_missing=("SoftwareApplication", "Organization"),
    ),
    content_signals=(
        ContentSignal(id="trial-cta", name="Free Trial CTA",
                      selector='a[href*="signup"], a[href*="trial"], [class*="trial"]', importance="critical"),
        ContentSignal(id="demo-cta", name="Demo CTA", selector='a[href*="demo"], [class*="demo"]', importance="high"),
        ContentSignal(id="pricing-table", name="Pricing Table",
                      selector='[class*="pricing"], [class*="plan"]', importance="high"),
        ContentSignal(id="customer-logos", name="Customer Logos",
                      selector='[class*="logo-wall"], [class*="customers"]', importance="medium"),
    ),
    page_patterns=(
        PagePattern(pattern=r"/features?/", page_type="feature", confidence=0.9),
        PagePattern(pattern=r"/pricing|/plans", page_type="pricing", confidence=0.95),
        PagePattern(pattern=r"/integrations?/", page_type="integration", confidence=0.9),
        PagePattern(pattern=r"/compare|/vs-|/alternatives?", page_type="comparison", confidence=0.9),
        PagePattern(pattern=r"/docs/|/help/|/support/", page_type="documentation", confidence=0.85),
        PagePattern(pattern=r"/blog/", page_type="content", confidence=0.8),
    ),
    min_keywords_with_competitive_data=10,
    min_pages_with_content=5,
)


PAID = PaidSkill(
    version=VERSION,
    business_model=(
        "Subscription software business acquiring free trials and demo requests that convert into "
        "recurring revenue."
    ),
    conversion_definition="A conversion is a trial sign-up or a demo request.",
    customer_journey="Problem search -> Solution research -> Comparison -> Trial or demo -> Paid plan",
    kpis=KPISet(
        primary=(
            KPIDefinition(metric="cac", importance="critical", target_direction="lower",
                          description="Cost to acquire a trial or demo"),
            KPIDefinition(metric="conversions", importance="critical", target_direction="higher",
                          description="Trials and demos"),
        ),
        secondary=(
            KPIDefinition(metric="conversionRate", importance="high", target_direction="higher",
                          description="Trial conversion rate"),
        ),
        irrelevant=("aov", "transactionValue"),
    ),
    benchmarks=PaidBenchmarks(
        ctr=ThresholdSet(excellent=5.0, good=3.5, average=2.5, poor=1.5),
        conversion_rate=ThresholdSet(excellent=8.0, good=5.0, average=3.0, poor=1.5),
        cpc=ThresholdSet(excellent=3.0, good=6.0, average=10.0, poor=18.0),
        cost_per_conversion=ThresholdSet(excellent=80, good=150, average=250, poor=400),
    ),
    key_patterns=(
        AnalysisPattern(id="competitor-conquest", name="Competitor Conquesting",
                        indicators=("Spend on competitor names", "Comparison pages exist"),
                        recommendation="Point competitor terms at dedicated comparison pages"),
    ),
    anti_patterns=(
        AnalysisPattern(id="free-seekers", name="Free Tool Seekers",
                        indicators=("Clicks on 'free' queries", "Low trial-to-paid rate"),
                        recommendation="Add 'free' and 'open source' negatives unless a free tier exists"),
    ),
    prompt=PromptFragments(
        role_context=(
            "You are an expert SaaS PPC strategist analyzing Google Ads performance for a subscription "
            "software company. Focus on lowering acquisition cost while growing trial volume."
        ),
        analysis_instructions=(
            "1. CAC EFFICIENCY: find keywords acquiring trials above target cost.\n"
            "2. COMPETITOR STRATEGY: review spend on competitor and comparison queries.\n"
            "3. FEATURE COVERAGE: find feature and integration demand without coverage."
        ),
        output_guidance="Express impact in trials, demos and acquisition cost.",
        constraints=("Do not recommend Shopping campaigns", "Do not use order value metrics"),
    ),
    examples=(
        WorkedExample(
            scenario="Comparison keyword sending traffic to the homepage",
            data='"acme vs rivalco" - $600/month, 2 trials, homepage landing',
            recommendation="Build a dedicated comparison page and point the ad group at it.",
            reasoning="Comparison searchers want a direct side-by-side answer.",
        ),
    ),
    recommendation_types=RecommendationTypes(
        prioritize=("cac-reduction", "trial-volume-growth", "competitor-strategy", "feature-keyword-expansion"),
        deprioritize=("brand-campaign-changes",),
        exclude=("shopping-campaigns", "local-targeting"),
    ),
    max_recommendations=8,
)


ORGANIC = OrganicSkill(
    version=VERSION,
    site_type="SaaS marketing site with feature, pricing, integration, comparison and documentation pages.",
    primary_goal="Drive organic visitors who start a trial or book a demo.",
    content_strategy="Feature depth, honest comparisons, integration pages and use-case content.",
    schema_rules=SchemaRules(
        required=("SoftwareApplication", "Organization"),
        recommended=("FAQPage", "AggregateRating", "BreadcrumbList", "HowTo"),
        invalid=("Product", "LocalBusiness"),
    ),
    kpis=KPISet(
        primary=(
            KPIDefinition(metric="organicTrials", importance="critical", target_direction="higher",
                          description="Trials from organic sessions"),
        ),
        secondary=(
            KPIDefinition(metric="comparisonPagePosition", importance="high", target_direction="lower",
                          description="Position of comparison pages"),
        ),
    ),
    benchmarks=OrganicBenchmarks(
        organic_ctr=ThresholdSet(excellent=5.0, good=3.5, average=2.5, poor=1.5),
        bounce_rate=ThresholdSet(excellent=35, good=45, average=55, poor=70),
        avg_position=ThresholdSet(excellent=5, good=10, average=20, poor=30),
    ),
    technical_checks=("Docs are indexable", "Pricing page renders without JavaScript"),
    prompt=PromptFragments(
        role_context=(
            "You are an expert SaaS SEO strategist analyzing organic search performance for a software "
            "company website. Focus on feature, comparison and integration visibility."
        ),
        analysis_instructions=(
            "1. Check for SoftwareApplication and Organization schema.\n"
            "2. Find comparison and integration topics without a ranking page.\n"
            "3. Review pricing and feature pages for trial CTAs."
        ),
        output_guidance="Give page-level actions tied to trial conversion.",
        constraints=("Never recommend Product or LocalBusiness schema",),
    ),
    recommendation_types=RecommendationTypes(
        prioritize=("software-schema-implementation", "comparison-content-creation", "feature-page-expansion",
                    "integration-page-creation"),
        exclude=("product-schema", "local-seo"),
    ),
    max_recommendations=8,
)


DIRECTOR = DirectorSkill(
    version=VERSION,
    business_priorities=("Lower acquisition cost", "Grow trial and demo volume", "Win comparison searches"),
    success_metrics=("Total trials (paid + organic)", "Blended CAC"),
    executive_framing="Leadership tracks pipeline: trials, demos and what each one costs.",
    conflict_rules=(
        ConflictRule(
            id="paid-vs-organic-brand",
            paid_signal="Keep brand bids",
            organic_signal="Brand ranks #1 organically",
            resolution="Keep brand bids only where competitors bid on the brand.",
            resulting_type="paid",
        ),
        ConflictRule(
            id="comparison-content-investment",
            paid_signal="Bid on competitor terms",
            organic_signal="Build comparison pages",
            resolution="Build comparison pages first, then point competitor ad groups at them.",
            resulting_type="hybrid",
        ),
    ),
    synergy_rules=(
        SynergyRule(
            id="comparison-page-quality-score",
            paid_condition="Competitor terms with low quality score",
            organic_condition="Comparison pages missing",
            combined_recommendation="A dedicated comparison page raises quality score and earns organic rank.",
        ),
    ),
    prioritization=(
        PrioritizationRule(condition="Increases trial volume", adjustment="boost", factor=1.5,
                           reason="Trials feed recurring revenue"),
    ),
    filtering=DirectorFiltering(
        max_recommendations=10,
        min_impact_threshold=ImpactLevel.MEDIUM,
        impact_weights=ImpactWeights(revenue=0.30, cost=0.30, effort=0.20, risk=0.20),
        must_include=("comparison page",),
        must_exclude=(
            "metric:aov",
            "schema:Product",
            "schema:Offer",
            "schema:LocalBusiness",
            "type:shopping-campaign",
            "type:merchant-center",
            "type:product-feed",
            "type:local-targeting",
        ),
    ),
    focus_areas=("Trial volume", "Acquisition cost", "Competitive positioning"),
    role_context=(
        "You are a senior digital marketing director synthesizing paid and organic search recommendations "
        "for a SaaS company. Leadership cares about trials, demos and acquisition cost."
    ),
    synthesis_instructions=(
        "1. Merge paid and organic actions that target the same feature or competitor.\n"
        "2. Resolve conflicts with the table below.\n"
        "3. Rank by trial impact and acquisition cost savings."
    ),
)


BUNDLE = SkillBundle(
    business_type=BusinessType.SAAS,
    version=VERSION,
    scout=SCOUT,
    researcher=RESEARCHER,
    paid=PAID,
    organic=ORGANIC,
    director=DIRECTOR,
)

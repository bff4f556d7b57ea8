"""
Lead-generation skill bundle.

Service businesses that capture leads through forms and calls. Revenue is not
tracked in-platform, so ROAS and transaction metrics are treated as irrelevant
and cost per lead drives prioritization.
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
        high_spend_threshold=300,
        low_roas_threshold=0,
        cannibalization_position=5,
        high_bounce_rate_threshold=70,
        low_ctr_threshold=2.0,
        min_impressions_for_analysis=50,
    ),
    keyword_rules=(
        PriorityRule(
            id="high-spend-low-conversions",
            name="High Spend, Low Lead Volume",
            description="Keywords consuming budget without generating leads",
            condition="spend > highSpendThreshold AND conversions < 3",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="high-cpl-keywords",
            name="Cost Per Lead Above Target",
            description="Keywords generating leads above the client's target cost per lead",
            condition="cpl > targetCpl AND conversions > 2",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="cannibalization-risk",
            name="Paid/Organic Overlap",
            description="Paying for clicks where organic already ranks well",
            condition="organicPosition <= cannibalizationPosition AND spend > 100",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="brand-efficiency",
            name="Brand Term Efficiency",
            description="Brand keywords where organic could carry more of the traffic",
            condition="isBrandTerm AND spend > 150 AND organicPosition <= 3",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="competitor-keywords",
            name="Competitor Term Spend",
            description="Spend on competitor brand terms that needs a deliberate strategy",
            condition="isCompetitorTerm AND spend > 100",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="high-intent-opportunity",
            name="High Intent Opportunity",
            description="Converting keywords with room to grow",
            condition="conversions > 5 AND conversionRate > 5",
            priority=PriorityLevel.MEDIUM,
        ),
    ),
    page_rules=(
        PriorityRule(
            id="high-spend-service-page",
            name="High Spend Service Page",
            description="Service pages receiving significant paid traffic",
            condition="isServicePage AND paidSpend > 250",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="poor-converting-landing",
            name="Poor Converting Landing Page",
            description="Landing pages with traffic but weak lead conversion",
            condition="sessions > 100 AND conversionRate < 2",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="high-bounce-landing",
            name="High Bounce Landing Page",
            description="Landing pages with excessive bounce rates",
            condition="bounceRate > highBounceRateThreshold AND sessions > 75",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="contact-page-issues",
            name="Contact Page Friction",
            description="Contact pages where visitors leave without reaching out",
            condition="isContactPage AND (bounceRate > 60 OR avgTimeOnPage < 30)",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="service-page-opportunity",
            name="Service Page Opportunity",
            description="Service pages with visibility but a weak click-through rate",
            condition="isServicePage AND impressions > 500 AND ctr < lowCtrThreshold",
            priority=PriorityLevel.MEDIUM,
        ),
    ),
    signals=(
        SignalPattern(name="isServicePage", target="url", pattern=r"/(services?|solutions|what-we-do)(/|$)"),
        SignalPattern(name="isContactPage", target="url", pattern=r"/(contact|get-a-quote|quote|consultation)(/|$)"),
        SignalPattern(name="isServiceQuery", target="query",
                      pattern=r"\b(services?|company|contractor|consultant|agency|quote|near me)\b"),
    ),
    metrics=ScoutMetrics(
        include=("spend", "conversions", "cpl", "conversionRate", "ctr", "cpc",
                 "impressions", "organicPosition", "bounceRate"),
        exclude=("roas", "revenue", "conversionValue"),
        primary=("cpl", "conversions", "conversionRate"),
    ),
    max_battleground_keywords=20,
    max_critical_pages=12,
)


RESEARCHER = ResearcherSkill(
    version=VERSION,
    required_competitive_metrics=("impressionShare", "lostImpressionShareRank"),
    optional_competitive_metrics=("lostImpressionShareBudget", "topOfPageRate", "overlapRate"),
    irrelevant_competitive_metrics=("absTopOfPageRate",),
    priority_boosts=(
        PriorityBoost(
            metric="impressionShare",
            condition="impressionShare < 40 AND conversions > 5",
            boost=1.8,
            reason="Lead-generating keyword with significant share opportunity",
        ),
        PriorityBoost(
            metric="lostImpressionShareRank",
            condition="lostImpressionShareRank > 30 AND isServiceQuery",
            boost=1.4,
            reason="Service query losing auctions on rank",
        ),
    ),
    schema_extraction=SchemaExtraction(
        look_for=("Service", "ProfessionalService", "LocalBusiness", "Organization", "FAQPage",
                  "Review", "AggregateRating", "BreadcrumbList"),
        flag_if_present=("Product", "Offer"),
        flag_if_missing=("Service", "Organization"),
    ),
    content_signals=(
        ContentSignal(id="lead-form", name="Lead Capture Form",
                      selector='form input[type="email"], form input[type="tel"]', importance="critical"),
        ContentSignal(id="phone-cta", name="Click-to-Call", selector='a[href^="tel:"]', importance="critical"),
        ContentSignal(id="testimonials", name="Testimonials",
                      selector='[class*="testimonial"], [class*="review"]', importance="high"),
        ContentSignal(id="trust-badges", name="Trust Badges",
                      selector='[class*="badge"], [class*="certif"], [class*="accredit"]', importance="medium"),
        ContentSignal(id="faq-section", name="FAQ Section", selector='[class*="faq"], details', importance="medium"),
    ),
    page_patterns=(
        PagePattern(pattern=r"/services?/|/solutions/", page_type="service", confidence=0.9),
        PagePattern(pattern=r"/contact|/get-a-quote|/quote", page_type="contact", confidence=0.95),
        PagePattern(pattern=r"/about", page_type="about", confidence=0.85),
        PagePattern(pattern=r"/blog/|/resources/|/guides?/", page_type="content", confidence=0.8),
        PagePattern(pattern=r"/lp/|/landing/", page_type="landing", confidence=0.9),
    ),
    min_keywords_with_competitive_data=8,
    min_pages_with_content=4,
    max_fetch_timeout_seconds=15.0,
    max_concurrent_fetches=5,
)


PAID = PaidSkill(
    version=VERSION,
    business_model=(
        "Service business that generates leads through forms and phone calls. Sales close offline, so "
        "lead volume and cost per lead are the measurable outcomes."
    ),
    conversion_definition="A conversion is a qualified lead: a form submission or a tracked call.",
    customer_journey=(
        "Problem awareness -> Research (service and comparison searches) -> "
        "Lead submission (form or call) -> Offline sales process"
    ),
    kpis=KPISet(
        primary=(
            KPIDefinition(metric="cpl", importance="critical", target_direction="lower",
                          description="Cost per lead", business_context="Compare against the client's target CPL."),
            KPIDefinition(metric="conversions", importance="critical", target_direction="higher",
                          description="Lead volume"),
        ),
        secondary=(
            KPIDefinition(metric="conversionRate", importance="high", target_direction="higher",
                          description="Lead conversion rate"),
            KPIDefinition(metric="impressionShare", importance="medium", target_direction="higher",
                          description="Share of available impressions captured"),
        ),
        irrelevant=("roas", "revenue", "aov", "conversionValue"),
    ),
    benchmarks=PaidBenchmarks(
        ctr=ThresholdSet(excellent=6.0, good=4.0, average=3.0, poor=1.5),
        conversion_rate=ThresholdSet(excellent=10.0, good=6.0, average=4.0, poor=2.0),
        cpc=ThresholdSet(excellent=2.0, good=4.0, average=6.0, poor=10.0),
        cost_per_conversion=ThresholdSet(excellent=30, good=60, average=100, poor=150),
    ),
    key_patterns=(
        AnalysisPattern(id="call-heavy-mobile", name="Call-Driven Mobile Traffic",
                        indicators=("High mobile share", "Calls outnumber form fills"),
                        recommendation="Add call extensions and call-only ads during business hours"),
    ),
    anti_patterns=(
        AnalysisPattern(id="informational-bleed", name="Informational Query Bleed",
                        indicators=("Clicks on how-to and DIY queries", "Near-zero lead rate"),
                        recommendation="Add informational negatives (how to, diy, free, jobs)"),
    ),
    prompt=PromptFragments(
        role_context=(
            "You are an expert lead generation PPC strategist analyzing Google Ads performance for a "
            "service business. Focus on lowering cost per lead while growing qualified lead volume."
        ),
        analysis_instructions=(
            "1. CPL EFFICIENCY: find keywords whose cost per lead exceeds target.\n"
            "2. WASTED SPEND: find keywords with spend and no leads.\n"
            "3. LEAD VOLUME: find converting keywords with room to scale.\n"
            "Never evaluate keywords by ROAS or revenue; that data is not tracked."
        ),
        output_guidance="Express impact as lead volume or cost per lead changes.",
        constraints=(
            "Do not reference ROAS, revenue or order value",
            "Do not recommend Shopping campaigns or product feeds",
        ),
    ),
    examples=(
        WorkedExample(
            scenario="Keyword spending without leads",
            data='"commercial roofing" - $420/month spend, 1 lead, position 2.1',
            recommendation="Cut bids 40% and test a dedicated commercial roofing landing page.",
            reasoning="High-cost clicks are landing on a generic page with no commercial proof points.",
        ),
    ),
    recommendation_types=RecommendationTypes(
        prioritize=("cpl-reduction", "lead-volume-growth", "call-optimization", "landing-page-improvement",
                    "negative-keywords"),
        deprioritize=("brand-campaign-changes",),
        exclude=("shopping-campaigns", "product-feed"),
    ),
    max_recommendations=8,
)


ORGANIC = OrganicSkill(
    version=VERSION,
    site_type="Service business website with service pages, proof content and lead capture.",
    primary_goal="Drive organic visitors who submit a form or call.",
    content_strategy="Service pages that answer buyer questions, backed by case studies and FAQs.",
    schema_rules=SchemaRules(
        required=("Service", "Organization"),
        recommended=("FAQPage", "Review", "AggregateRating", "BreadcrumbList"),
        invalid=("Product", "Offer"),
    ),
    kpis=KPISet(
        primary=(
            KPIDefinition(metric="organicLeads", importance="critical", target_direction="higher",
                          description="Leads from organic sessions"),
        ),
        secondary=(
            KPIDefinition(metric="servicePagePosition", importance="high", target_direction="lower",
                          description="Average position of service pages"),
        ),
        irrelevant=("organicRevenue", "productPageVisibility"),
    ),
    benchmarks=OrganicBenchmarks(
        organic_ctr=ThresholdSet(excellent=5.0, good=3.5, average=2.5, poor=1.5),
        bounce_rate=ThresholdSet(excellent=40, good=50, average=60, poor=75),
        avg_position=ThresholdSet(excellent=5, good=10, average=15, poor=30),
    ),
    technical_checks=("Form works on mobile", "Phone numbers are click-to-call", "Service pages are indexable"),
    prompt=PromptFragments(
        role_context=(
            "You are an expert lead generation SEO strategist analyzing organic search performance for a "
            "service business website. Focus on service page visibility and lead conversion."
        ),
        analysis_instructions=(
            "1. Check service pages for Service and Organization schema.\n"
            "2. Find pages missing trust signals near the lead form.\n"
            "3. Identify service topics with paid demand but no strong organic page."
        ),
        output_guidance="Give page-level actions tied to lead conversion.",
        constraints=("Never recommend Product schema", "Do not recommend ecommerce features"),
    ),
    critical_issues=(
        IssueDefinition(id="form-below-fold", pattern="Lead form not visible without scrolling",
                        recommendation="Move the form or a primary CTA above the fold"),
    ),
    recommendation_types=RecommendationTypes(
        prioritize=("service-schema-implementation", "trust-signal-addition", "content-expansion",
                    "faq-implementation"),
        deprioritize=("blog-volume-increase",),
        exclude=("product-schema", "link-building-tactics"),
    ),
    max_recommendations=8,
)


DIRECTOR = DirectorSkill(
    version=VERSION,
    business_priorities=(
        "Lower cost per lead",
        "Grow qualified lead volume",
        "Strengthen service page visibility",
    ),
    success_metrics=("Total leads (paid + organic)", "Blended cost per lead"),
    executive_framing=(
        "Leadership measures marketing by leads and cost per lead. Frame every recommendation in those "
        "terms; revenue and ROAS are not available."
    ),
    conflict_rules=(
        ConflictRule(
            id="paid-vs-organic-overlap",
            paid_signal="Keep bidding on service terms",
            organic_signal="Service page ranks top 3 for the same terms",
            resolution="Test reduced bids on overlapping terms and track total lead volume.",
            resulting_type="hybrid",
        ),
        ConflictRule(
            id="landing-page-strategy",
            paid_signal="Dedicated PPC landing page",
            organic_signal="Improve the service page",
            resolution="Improve the service page first; build a PPC page only for distinct offers.",
            resulting_type="organic",
        ),
    ),
    synergy_rules=(
        SynergyRule(
            id="keyword-content-alignment",
            paid_condition="Converting search terms identified",
            organic_condition="Service pages lack those terms",
            combined_recommendation="Work converting paid search terms into service page headings and copy.",
        ),
        SynergyRule(
            id="faq-content-leverage",
            paid_condition="Question-style queries in search terms",
            organic_condition="No FAQ content",
            combined_recommendation="Build FAQ sections from paid search questions and mark them up with FAQPage.",
        ),
    ),
    prioritization=(
        PrioritizationRule(condition="Reduces CPL by more than 20%", adjustment="boost",
                           factor=1.8, reason="Direct cost per lead impact"),
        PrioritizationRule(condition="Mentions revenue or ROAS", adjustment="exclude",
                           factor=0.0, reason="Metrics not tracked for this business"),
    ),
    filtering=DirectorFiltering(
        max_recommendations=10,
        min_impact_threshold=ImpactLevel.MEDIUM,
        impact_weights=ImpactWeights(revenue=0.30, cost=0.30, effort=0.20, risk=0.20),
        must_include=("lead form",),
        must_exclude=(
            "metric:roas",
            "metric:revenue",
            "metric:aov",
            "metric:conversionValue",
            "schema:Product",
            "schema:Offer",
            "type:shopping-campaign",
            "type:merchant-center",
            "type:product-feed",
        ),
    ),
    focus_areas=("Lead volume", "Cost per lead", "Service page conversion"),
    max_highlights=5,
    role_context=(
        "You are a senior digital marketing director synthesizing paid and organic search recommendations "
        "for a lead generation business. Leadership cares about lead volume and cost per lead."
    ),
    synthesis_instructions=(
        "1. Merge paid and organic actions that target the same service.\n"
        "2. Resolve conflicts with the table below.\n"
        "3. Rank by lead impact and cost per lead savings."
    ),
    constraints=("Never reference ROAS, revenue or order value",),
)


BUNDLE = SkillBundle(
    business_type=BusinessType.LEAD_GEN,
    version=VERSION,
    scout=SCOUT,
    researcher=RESEARCHER,
    paid=PAID,
    organic=ORGANIC,
    director=DIRECTOR,
)

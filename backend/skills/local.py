"""
Local business skill bundle.

Businesses serving a geographic area from one or more physical locations.
Calls, direction requests and store visits are the outcomes; location pages,
Google Business Profile and NAP consistency dominate organic work.
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
        high_spend_threshold=200,
        low_roas_threshold=0,
        cannibalization_position=3,
        high_bounce_rate_threshold=60,
        low_ctr_threshold=3.0,
        min_impressions_for_analysis=30,
    ),
    keyword_rules=(
        PriorityRule(
            id="high-spend-low-conversions",
            name="High Spend, Low Conversions",
            description="Local keywords consuming budget without calls or visits",
            condition="spend > highSpendThreshold AND conversions < 2",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="local-pack-competition",
            name="Local Pack Competition",
            description="Local-intent keywords where organic sits outside the map pack",
            condition="isLocalIntent AND organicPosition > cannibalizationPosition AND spend > 50",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="cannibalization-risk",
            name="Paid/Organic Overlap",
            description="Paying for clicks where organic already ranks in the top results",
            condition="organicPosition <= cannibalizationPosition AND spend > 75",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="location-keyword-match",
            name="Converting Location Keyword",
            description="City or neighborhood keywords that convert",
            condition="isLocationKeyword AND conversions > 2",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="gmb-opportunity",
            name="Business Profile Opportunity",
            description="Local-intent queries where organic visibility is weak",
            condition="isLocalIntent AND organicPosition > 5",
            priority=PriorityLevel.MEDIUM,
        ),
        PriorityRule(
            id="near-me-keywords",
            name="Near Me Demand",
            description="'Near me' searches with meaningful volume",
            condition="isNearMeQuery AND impressions > 50",
            priority=PriorityLevel.MEDIUM,
        ),
    ),
    page_rules=(
        PriorityRule(
            id="location-page-issues",
            name="Location Page Issues",
            description="Location pages that bounce or fail to convert",
            condition="isLocationPage AND (bounceRate > 60 OR conversionRate < 3)",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="high-spend-landing",
            name="High Spend Landing Page",
            description="Pages receiving significant paid traffic",
            condition="paidSpend > 150",
            priority=PriorityLevel.CRITICAL,
        ),
        PriorityRule(
            id="service-page-local",
            name="Service Page Local Relevance",
            description="Service pages ranking poorly for local searches",
            condition="isServicePage AND organicPosition > 10",
            priority=PriorityLevel.HIGH,
        ),
        PriorityRule(
            id="contact-page-issues",
            name="Contact Page Friction",
            description="Contact pages where visitors leave without calling",
            condition="isContactPage AND bounceRate > 50",
            priority=PriorityLevel.HIGH,
        ),
    ),
    signals=(
        SignalPattern(name="isNearMeQuery", target="query", pattern=r"\bnear me\b|\bnearby\b"),
        SignalPattern(name="isLocalIntent", target="query",
                      pattern=r"\b(near me|nearby|open now|in [a-z]+|local|directions|hours)\b"),
        SignalPattern(name="isLocationKeyword", target="query", pattern=r"\b(in|near|around) [a-z]+"),
        SignalPattern(name="isLocationPage", target="url", pattern=r"/(locations?|areas?-we-serve|service-areas?)(/|$)"),
        SignalPattern(name="isServicePage", target="url", pattern=r"/services?(/|$)"),
        SignalPattern(name="isContactPage", target="url", pattern=r"/(contact|directions|visit)(/|$)"),
    ),
    metrics=ScoutMetrics(
        include=("spend", "conversions", "clicks", "ctr", "cpc", "impressions", "organicPosition",
                 "bounceRate", "conversionRate"),
        exclude=("roas", "revenue", "conversionValue"),
        primary=("conversions", "clicks"),
    ),
    max_battleground_keywords=15,
    max_critical_pages=10,
)


RESEARCHER = ResearcherSkill(
    version=VERSION,
    required_competitive_metrics=("impressionShare", "lostImpressionShareRank"),
    optional_competitive_metrics=("lostImpressionShareBudget", "topOfPageRate"),
    irrelevant_competitive_metrics=("overlapRate", "outrankingShare"),
    priority_boosts=(
        PriorityBoost(
            metric="impressionShare",
            condition="impressionShare < 40 AND isLocalIntent",
            boost=1.7,
            reason="Local-intent keyword missing most of the available impressions",
        ),
        PriorityBoost(
            metric="lostImpressionShareBudget",
            condition="lostImpressionShareBudget > 30 AND conversions > 2",
            boost=1.4,
            reason="Converting local keyword limited by budget",
        ),
    ),
    schema_extraction=SchemaExtraction(
        look_for=("LocalBusiness", "PostalAddress", "GeoCoordinates", "OpeningHoursSpecification",
                  "Review", "AggregateRating", "Service"),
        flag_if_present=("SoftwareApplication", "Product"),
        flag_if_missing=("LocalBusiness",),
    ),
    content_signals=(
        ContentSignal(id="nap-block", name="Name, Address, Phone",
                      selector='address, [itemtype*="PostalAddress"], [class*="address"]', importance="critical"),
        ContentSignal(id="click-to-call", name="Click-to-Call", selector='a[href^="tel:"]', importance="critical"),
        ContentSignal(id="map-embed", name="Map Embed",
                      selector='iframe[src*="google.com/maps"], [class*="map"]', importance="high"),
        ContentSignal(id="opening-hours", name="Opening Hours", selector='[class*="hours"]', importance="high"),
        ContentSignal(id="local-reviews", name="Local Reviews", selector='[class*="review"]', importance="medium"),
    ),
    page_patterns=(
        PagePattern(pattern=r"/locations?/|/service-areas?/", page_type="location", confidence=0.9),
        PagePattern(pattern=r"/services?/", page_type="service", confidence=0.9),
        PagePattern(pattern=r"/contact|/directions", page_type="contact", confidence=0.95),
        PagePattern(pattern=r"/reviews|/testimonials", page_type="reviews", confidence=0.85),
    ),
    min_keywords_with_competitive_data=5,
    min_pages_with_content=3,
)


PAID = PaidSkill(
    version=VERSION,
    business_model="Local business serving customers within a service area from physical locations.",
    conversion_definition="A conversion is a call, a direction request, a booking or a store visit.",
    customer_journey="Local need -> 'near me' or city search -> Map pack / ad -> Call or visit",
    kpis=KPISet(
        primary=(
            KPIDefinition(metric="conversions", importance="critical", target_direction="higher",
                          description="Calls, bookings and direction requests"),
            KPIDefinition(metric="calls", importance="critical", target_direction="higher",
                          description="Tracked phone calls"),
        ),
        secondary=(
            KPIDefinition(metric="storeVisits", importance="high", target_direction="higher",
                          description="Modeled store visits"),
        ),
        irrelevant=("roas", "revenue", "aov", "mrr", "arr"),
    ),
    benchmarks=PaidBenchmarks(
        ctr=ThresholdSet(excellent=7.0, good=5.0, average=3.5, poor=2.0),
        conversion_rate=ThresholdSet(excellent=12.0, good=8.0, average=5.0, poor=2.5),
        cpc=ThresholdSet(excellent=1.5, good=3.0, average=5.0, poor=8.0),
    ),
    key_patterns=(
        AnalysisPattern(id="radius-tuning", name="Radius Tuning",
                        indicators=("Conversions cluster near locations", "Spend on distant clicks"),
                        recommendation="Tighten location radius and apply distance bid adjustments"),
    ),
    anti_patterns=(
        AnalysisPattern(id="after-hours-spend", name="After-Hours Spend",
                        indicators=("Clicks outside opening hours", "No call answer"),
                        recommendation="Apply ad scheduling aligned to opening hours"),
    ),
    prompt=PromptFragments(
        role_context=(
            "You are an expert local business PPC strategist analyzing Google Ads performance for a business "
            "serving customers in a defined area. Focus on calls, visits and local coverage."
        ),
        analysis_instructions=(
            "1. LOCAL COVERAGE: find service-area keywords with low share.\n"
            "2. CALL PERFORMANCE: review call-heavy mobile traffic.\n"
            "3. SCHEDULING: spot spend outside business hours."
        ),
        output_guidance="Express impact in calls, bookings and visits.",
        constraints=("Do not reference ROAS or revenue", "Do not recommend Shopping campaigns"),
    ),
    examples=(
        WorkedExample(
            scenario="Near me keyword with low share",
            data='"plumber near me" - 38% impression share, 9 calls/month',
            recommendation="Raise bids within 10 miles and add call extensions.",
            reasoning="Near me searchers call the first visible business.",
        ),
    ),
    recommendation_types=RecommendationTypes(
        prioritize=("call-optimization", "location-targeting", "ad-scheduling", "local-keyword-expansion",
                    "location-extensions"),
        exclude=("shopping-campaigns",),
    ),
    max_recommendations=6,
)


ORGANIC = OrganicSkill(
    version=VERSION,
    site_type="Local business website with location, service and contact pages.",
    primary_goal="Win the map pack and local organic results.",
    content_strategy="One strong page per location and service with consistent NAP data.",
    schema_rules=SchemaRules(
        required=("LocalBusiness",),
        recommended=("OpeningHoursSpecification", "GeoCoordinates", "Review", "AggregateRating"),
        invalid=("SoftwareApplication", "Product"),
    ),
    kpis=KPISet(
        primary=(
            KPIDefinition(metric="localPackVisibility", importance="critical", target_direction="higher",
                          description="Presence in the local pack"),
        ),
        secondary=(
            KPIDefinition(metric="gbpActions", importance="high", target_direction="higher",
                          description="Calls and direction requests from Google Business Profile"),
        ),
    ),
    benchmarks=OrganicBenchmarks(
        organic_ctr=ThresholdSet(excellent=6.0, good=4.0, average=3.0, poor=1.5),
        bounce_rate=ThresholdSet(excellent=35, good=45, average=55, poor=65),
        avg_position=ThresholdSet(excellent=3, good=5, average=10, poor=20),
    ),
    technical_checks=("NAP matches Google Business Profile", "Location pages are indexable"),
    prompt=PromptFragments(
        role_context=(
            "You are an expert local SEO strategist analyzing organic search performance for a local business. "
            "Focus on map pack visibility, location pages and NAP consistency."
        ),
        analysis_instructions=(
            "1. Check location pages for LocalBusiness schema.\n"
            "2. Confirm NAP details appear and are consistent.\n"
            "3. Identify service-area searches without a location page."
        ),
        output_guidance="Give page-level actions tied to calls and visits.",
        constraints=("Never recommend SoftwareApplication schema",),
    ),
    recommendation_types=RecommendationTypes(
        prioritize=("gbp-optimization", "localbusiness-schema-implementation", "nap-consistency",
                    "review-acquisition", "location-page-creation"),
        exclude=("software-schema",),
    ),
    max_recommendations=6,
)


DIRECTOR = DirectorSkill(
    version=VERSION,
    business_priorities=("More calls and visits", "Map pack visibility", "Efficient local ad spend"),
    success_metrics=("Total calls", "Direction requests", "Local pack presence"),
    executive_framing="Owners think in phone calls and foot traffic; keep recommendations practical.",
    conflict_rules=(
        ConflictRule(
            id="paid-vs-organic-local",
            paid_signal="Bid on local terms",
            organic_signal="Business already in the map pack",
            resolution="Reduce bids where the map pack listing is top 3 and calls hold steady.",
            resulting_type="hybrid",
        ),
        ConflictRule(
            id="gbp-vs-website-priority",
            paid_signal="Send ads to the website",
            organic_signal="Most actions happen on the business profile",
            resolution="Prioritize business profile completeness before website redesigns.",
            resulting_type="organic",
        ),
    ),
    synergy_rules=(
        SynergyRule(
            id="review-amplification",
            paid_condition="Seller ratings eligible",
            organic_condition="Review volume growing",
            combined_recommendation="Run one review program that feeds both seller ratings and the business profile.",
        ),
    ),
    prioritization=(
        PrioritizationRule(condition="Increases calls", adjustment="boost", factor=1.5,
                           reason="Calls are the primary outcome"),
    ),
    filtering=DirectorFiltering(
        max_recommendations=8,
        min_impact_threshold=ImpactLevel.MEDIUM,
        impact_weights=ImpactWeights(revenue=0.30, cost=0.25, effort=0.25, risk=0.20),
        must_include=("GBP optimization", "NAP consistency", "LocalBusiness schema"),
        must_exclude=(
            "metric:roas",
            "metric:mrr",
            "metric:arr",
            "schema:SoftwareApplication",
            "type:shopping-campaign",
            "type:merchant-center",
        ),
    ),
    focus_areas=("Calls and visits", "Local visibility"),
    role_context=(
        "You are a senior digital marketing director synthesizing paid and organic search recommendations "
        "for a local business. The owner cares about calls, bookings and foot traffic."
    ),
    synthesis_instructions=(
        "1. Merge paid and organic actions for the same location or service.\n"
        "2. Resolve conflicts with the table below.\n"
        "3. Rank by call and visit impact."
    ),
    category_labels={"paid": "Paid Search", "organic": "Local SEO", "hybrid": "Both Channels"},
)


BUNDLE = SkillBundle(
    business_type=BusinessType.LOCAL,
    version=VERSION,
    scout=SCOUT,
    researcher=RESEARCHER,
    paid=PAID,
    organic=ORGANIC,
    director=DIRECTOR,
)

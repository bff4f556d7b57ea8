"""
Tests for landing page fetching and HTML analysis.

HTML analysis runs on static documents; fetching uses httpx.MockTransport
so no request leaves the process.
"""

import httpx
import pytest

from backend.services.page_content import (
    CONTENT_PREVIEW_CHARS,
    PageContentFetcher,
    analyze_page,
    classify_page,
    schema_types,
)
from backend.skills.types import PagePattern


SERVICE_PAGE = """
<html>
<head>
  <title>Roof Repair Services | Acme Roofing</title>
  <meta name="description" content="Fast, insured roof repair in Denver.">
  <link rel="canonical" href="https://example.com/services/roof-repair">
  <script type="application/ld+json">
    {"@context": "https://schema.org", "@graph": [
      {"@type": "Organization", "name": "Acme Roofing"},
      {"@type": ["Service", "Product"], "name": "Roof Repair"}
    ]}
  </script>
  <style>.hero { color: red; }</style>
</head>
<body>
  <h1>Emergency Roof Repair</h1>
  <p>We repair storm damage within 24 hours.</p>
  <a href="tel:+13035550100">Call now</a>
  <div class="customer-testimonials">Great work!</div>
  <script>var tracking = "do not count these words";</script>
</body>
</html>
"""


class TestAnalyzePage:

    def test_basic_fields(self, lead_gen_bundle) -> None:
        content = analyze_page('https://example.com/services/roof-repair', SERVICE_PAGE, lead_gen_bundle.researcher)

        assert content.title == 'Roof Repair Services | Acme Roofing'
        assert content.h1 == 'Emergency Roof Repair'
        assert content.metaDescription == 'Fast, insured roof repair in Denver.'
        assert content.canonicalUrl == 'https://example.com/services/roof-repair'
        assert 'storm damage' in content.contentPreview
        assert 'tracking' not in content.contentPreview
        assert 'color' not in content.contentPreview

    def test_schema_detection_and_flags(self, lead_gen_bundle) -> None:
        content = analyze_page('https://example.com/services/roof-repair', SERVICE_PAGE, lead_gen_bundle.researcher)

        assert content.schemaTypes == ['Organization', 'Service', 'Product']
        assert 'Inappropriate schema present: Product' in content.schemaErrors
        assert not any(error.startswith('Missing') for error in content.schemaErrors)

    def test_missing_schema_is_flagged(self, lead_gen_bundle) -> None:
        content = analyze_page('https://example.com/contact', '<html><body><p>Hi</p></body></html>',
                               lead_gen_bundle.researcher)
        assert content.schemaTypes == []
        assert content.schemaErrors == [
            'Missing recommended schema: Service',
            'Missing recommended schema: Organization',
        ]

    def test_invalid_json_ld(self, lead_gen_bundle) -> None:
        html = '<html><head><script type="application/ld+json">{not json</script></head><body></body></html>'
        content = analyze_page('https://example.com/', html, lead_gen_bundle.researcher)
        assert 'Invalid JSON-LD syntax' in content.schemaErrors

    def test_content_signals(self, lead_gen_bundle) -> None:
        content = analyze_page('https://example.com/services/roof-repair', SERVICE_PAGE, lead_gen_bundle.researcher)
        present = {signal.id: signal.present for signal in content.contentSignals}

        assert present['phone-cta']
        assert present['testimonials']
        assert not present['lead-form']
        assert len(content.contentSignals) == len(lead_gen_bundle.researcher.content_signals)

    def test_preview_is_bounded(self, lead_gen_bundle) -> None:
        html = '<html><body><p>' + 'word ' * 1000 + '</p></body></html>'
        content = analyze_page('https://example.com/', html, lead_gen_bundle.researcher)
        assert content.wordCount == 1000
        assert len(content.contentPreview) == CONTENT_PREVIEW_CHARS

    def test_page_type(self, lead_gen_bundle) -> None:
        content = analyze_page('https://example.com/services/roof-repair', SERVICE_PAGE, lead_gen_bundle.researcher)
        assert content.pageType == 'service'
        assert content.pageTypeConfidence == 0.9


class TestClassifyPage:

    PATTERNS = (
        PagePattern(pattern=r'/services?/', page_type='service', confidence=0.9),
        PagePattern(pattern=r'/services/contact', page_type='contact', confidence=0.95),
        PagePattern(pattern=r'/blog/', page_type='content', confidence=0.6),
    )

    def test_highest_confidence_wins(self) -> None:
        assert classify_page('https://x.com/services/contact-us', self.PATTERNS, 'landing', 0.7) == ('contact', 0.95)

    def test_below_threshold_uses_default(self) -> None:
        assert classify_page('https://x.com/blog/post', self.PATTERNS, 'landing', 0.7) == ('landing', 0.0)

    def test_no_match(self) -> None:
        assert classify_page('https://x.com/pricing', self.PATTERNS, 'landing', 0.7) == ('landing', 0.0)


class TestSchemaTypes:

    def test_nested_lists_and_graph(self) -> None:
        data = [{'@type': 'FAQPage'}, {'@graph': [{'@type': 'Service'}, {'name': 'untyped'}]}]
        assert schema_types(data) == ['FAQPage', 'Service']

    def test_scalars(self) -> None:
        assert schema_types('Service') == []


# =============================================================================
# Fetching
# =============================================================================

def _fetcher(handler) -> PageContentFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PageContentFetcher(timeout=5.0, user_agent='TestBot/1.0', client=client)


@pytest.mark.asyncio
class TestFetchHtml:

    async def test_returns_html(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen['user_agent'] = request.headers['user-agent']
            return httpx.Response(200, text='<html>ok</html>', headers={'content-type': 'text/html; charset=utf-8'})

        html = await _fetcher(handler).fetch_html('https://example.com/')
        assert html == '<html>ok</html>'
        assert seen['user_agent'] == 'TestBot/1.0'

    async def test_non_success_is_none(self) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(404, text='missing'))
        assert await fetcher.fetch_html('https://example.com/gone') is None

    async def test_non_html_is_none(self) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(200, json={'a': 1}))
        assert await fetcher.fetch_html('https://example.com/api') is None

    async def test_transport_errors_propagate(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout('timed out', request=request)

        with pytest.raises(httpx.HTTPError):
            await _fetcher(handler).fetch_html('https://example.com/slow')

    async def test_from_settings(self, test_settings) -> None:
        fetcher = PageContentFetcher.from_settings(test_settings)
        assert fetcher.timeout == 5.0
        assert fetcher.headers['User-Agent'] == test_settings.page_fetch_user_agent

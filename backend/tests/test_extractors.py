"""
Tests for HTML extraction helpers and blocker detection.
"""

from bs4 import BeautifulSoup

from scrapers.base import ArticleContent, ArticleSelectors
from scrapers.utils.extractors import (
    detect_blocker,
    extract_article,
    extract_blocks,
    extract_date_value,
    extract_image_url,
    render_article_text,
    select_attr,
    select_first,
    select_text,
)


def soup_of(html):
    return BeautifulSoup(html, 'html.parser')


class TestSelectors:
    """Test selector helpers."""

    def test_select_first_matches_element_itself(self):
        card = soup_of('<a class="card" href="/news/1"><span>Title</span></a>').a

        assert select_first(card, 'a') is card
        assert select_attr(card, 'a', 'href') == '/news/1'

    def test_select_attr_falls_back_to_nested_element(self):
        card = soup_of('<div class="item"><h5><a href="/news/2">Title</a></h5></div>').div

        assert select_attr(card, 'h5', 'href') == '/news/2'

    def test_select_text_missing(self):
        card = soup_of('<div><p>Text</p></div>').div

        assert select_text(card, '.missing') == ''
        assert select_text(card, None) == ''

    def test_date_prefers_datetime_attribute(self):
        card = soup_of('<div><span class="date"><time datetime="2025-03-18T17:16:00Z">2h</time></span></div>').div

        assert extract_date_value(card, '.date') == '2025-03-18T17:16:00Z'
        assert extract_date_value(card, 'time') == '2025-03-18T17:16:00Z'

    def test_date_falls_back_to_text(self):
        card = soup_of('<div><span class="date"> Mar 18, 2025 </span></div>').div

        assert extract_date_value(card, '.date') == 'Mar 18, 2025'


class TestExtractImageUrl:
    """Test image source extraction."""

    def test_lazy_image_skips_placeholder(self):
        card = soup_of('<div><img src="data:image/gif;base64,AAA" data-src="/img/a.jpg"></div>').div

        assert extract_image_url(card, 'img') == '/img/a.jpg'

    def test_srcset(self):
        card = soup_of('<div><img srcset="/img/small.jpg 320w, /img/big.jpg 1024w"></div>').div

        assert extract_image_url(card, 'img') == '/img/small.jpg'

    def test_wrapper_with_nested_image(self):
        card = soup_of('<div><figure class="thumb"><img src="/img/b.jpg"></figure></div>').div

        assert extract_image_url(card, '.thumb') == '/img/b.jpg'

    def test_missing(self):
        assert extract_image_url(soup_of('<div></div>').div, 'img') is None


class TestDetectBlocker:
    """Test bot-protection detection."""

    def test_normal_page(self):
        assert detect_blocker(soup_of('<html><body><p>Bitcoin news</p></body></html>')) == (False, None)

    def test_block_title(self):
        blocked, reason = detect_blocker(soup_of(
            '<html><head><title>Access Denied</title></head><body><p>x</p></body></html>'
        ))

        assert blocked
        assert 'access denied' in reason

    def test_captcha_on_short_page(self):
        blocked, reason = detect_blocker(soup_of(
            '<html><body><div class="g-recaptcha" data-sitekey="abc"></div></body></html>'
        ))

        assert blocked
        assert reason == 'captcha detected'

    def test_captcha_on_real_page_ignored(self):
        article = '<p>' + 'Markets moved sharply today. ' * 200 + '</p>'
        html = f'<html><body>{article}<form><div class="g-recaptcha"></div></form></body></html>'

        assert detect_blocker(soup_of(html)) == (False, None)

    def test_rate_limit_page(self):
        blocked, reason = detect_blocker(soup_of('<html><body><h1>429 Too Many Requests</h1></body></html>'))

        assert blocked
        assert 'too many requests' in reason

    def test_empty_page(self):
        assert detect_blocker(soup_of('<html><body></body></html>')) == (True, 'empty page')

    def test_fragment_without_body(self):
        assert detect_blocker(soup_of('<div><p>Only a fragment</p></div>')) == (False, None)


class TestArticleRendering:
    """Test article block extraction and text layout."""

    def test_blocks_in_document_order(self):
        root = soup_of("""
            <div class="content">
              <p>Intro paragraph.</p>
              <script>var x = 1;</script>
              <h2>Background</h2>
              <h3>Details</h3>
              <blockquote><p>Quoted text.</p></blockquote>
              <ul><li>First</li><li>Second <strong>point</strong></li></ul>
            </div>
        """).div

        assert extract_blocks(root) == [
            'Intro paragraph.',
            '## Background',
            '### Details',
            'Quoted text.',
            '- First',
            '- Second point',
        ]

    def test_plain_text_fallback(self):
        root = soup_of('<div class="content">Just   text, no blocks.</div>').div

        assert extract_blocks(root) == ['Just text, no blocks.']

    def test_render_article_text(self):
        content = ArticleContent(
            title='Title',
            subtitle='Sub',
            author='Jane Doe',
            published='Mar 18, 2025',
            tags=['Bitcoin', 'ETF'],
            blocks=['Para one.', '## Header'],
        )

        assert render_article_text(content) == (
            "# Title\n\nSub\n\nAuthor: Jane Doe | Date: Mar 18, 2025\n\n"
            "Para one.\n\n## Header\n\nTags: Bitcoin, ETF"
        )

    def test_render_skips_missing_parts(self):
        assert render_article_text(ArticleContent(title='Title', blocks=['Body.'])) == "# Title\n\nBody."

    def test_extract_article_without_container(self):
        selectors = ArticleSelectors(content='.post-content', title='h1')

        assert extract_article(soup_of('<html><body><h1>T</h1></body></html>'), selectors) is None

    def test_extract_article_tags_strip_hash(self):
        selectors = ArticleSelectors(content='.body', title='h1', tags='.tag')
        soup = soup_of("""
            <html><body><h1>T</h1><div class="body"><p>Text.</p></div>
            <span class="tag">#Bitcoin</span><span class="tag">#Bitcoin</span><span class="tag">ETF</span>
            </body></html>
        """)

        content = extract_article(soup, selectors)

        assert content.tags == ['Bitcoin', 'ETF']
        assert content.text == "# T\n\nText.\n\nTags: Bitcoin, ETF"

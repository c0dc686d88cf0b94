"""
Data extraction utilities for scrapers.

These functions pull values out of parsed HTML with CSS selectors and turn
article pages into plain text.
"""

from typing import Optional, List, Tuple

import soupsieve
from bs4 import BeautifulSoup, Tag

from ..base import ArticleContent, ArticleSelectors
from .normalizers import clean_text

# Elements rendered as article blocks, with their text prefix
BLOCK_PREFIXES = {
    'h2': '## ',
    'h3': '### ',
    'h4': '### ',
    'li': '- ',
    'p': '',
    'blockquote': '',
}

NOISE_TAGS = ['script', 'style', 'noscript', 'iframe', 'svg', 'form']

CAPTCHA_SELECTORS = (
    "iframe[src*='captcha'], iframe[src*='challenges.cloudflare.com'], "
    ".g-recaptcha, .h-captcha, #challenge-form, #cf-challenge-running, [data-sitekey]"
)

BLOCK_PHRASES = [
    'access denied',
    'verify you are human',
    'checking your browser before accessing',
    'attention required! | cloudflare',
    'please enable javascript and cookies to continue',
    'sorry, you have been blocked',
    'too many requests',
]

# Body text longer than this is a real page, whatever captcha or phrase it holds
BLOCK_PAGE_MAX_CHARS = 3000


def select_first(element: Tag, selector: Optional[str]) -> Optional[Tag]:
    """
    Return the first match for selector inside element.

    The element itself counts as a match, so a card that is the link
    (e.g. `a.card`) works with a link selector of `a`.
    """
    if not selector or element is None:
        return None
    found = element.select_one(selector)
    if found is not None:
        return found
    if isinstance(element, Tag) and not isinstance(element, BeautifulSoup):
        if soupsieve.match(selector, element):
            return element
    return None


def select_text(element: Tag, selector: Optional[str]) -> str:
    """Text of the first match, whitespace collapsed, "" when missing."""
    found = select_first(element, selector)
    if found is None:
        return ""
    return clean_text(found.get_text(' '))


def select_attr(element: Tag, selector: Optional[str], attr: str) -> Optional[str]:
    """
    Attribute of the first match that carries it.

    Falls back to the first matching descendant with the attribute, so
    `h5 a` style selectors still resolve when the first hit is a wrapper.
    """
    found = select_first(element, selector)
    if found is None:
        return None
    value = found.get(attr)
    if not value:
        nested = found.find(attrs={attr: True})
        value = nested.get(attr) if nested is not None else None
    if isinstance(value, list):
        value = ' '.join(value)
    return value.strip() if value else None


def select_all_text(element: Tag, selector: Optional[str]) -> List[str]:
    """Cleaned, non-empty, de-duplicated text of every match."""
    if not selector or element is None:
        return []
    values = []
    for found in element.select(selector):
        text = clean_text(found.get_text(' '))
        if text and text not in values:
            values.append(text)
    return values


def extract_date_value(element: Tag, selector: Optional[str]) -> Optional[str]:
    """Raw date for the first match: `datetime` attribute first, then text."""
    found = select_first(element, selector)
    if found is None:
        return None
    machine = found.get('datetime')
    if not machine and found.name != 'time':
        nested = found.find('time', attrs={'datetime': True})
        machine = nested.get('datetime') if nested is not None else None
    return (machine or clean_text(found.get_text(' '))) or None


def extract_image_url(element: Tag, selector: Optional[str]) -> Optional[str]:
    """
    Image source for the first match.

    Handles lazy-loaded images (data-src, data-lazy-src, srcset) and
    background-image styles.
    """
    found = select_first(element, selector)
    if found is None:
        return None
    if found.name != 'img':
        img = found.find('img')
        if img is not None:
            found = img

    for attr in ('src', 'data-src', 'data-lazy-src'):
        value = found.get(attr)
        if value and not value.startswith('data:'):
            return value.strip()

    srcset = found.get('srcset') or found.get('data-srcset')
    if srcset:
        return srcset.split(',')[0].strip().split(' ')[0]

    style = found.get('style') or ''
    if 'url(' in style:
        return style.split('url(', 1)[1].split(')', 1)[0].strip('\'" ')
    return None


def detect_blocker(soup: BeautifulSoup) -> Tuple[bool, Optional[str]]:
    """
    Check a loaded page for bot protection.

    Returns:
        Tuple of (blocked, reason)
    """
    title = clean_text(soup.title.get_text(' ')).lower() if soup.title else ""
    for phrase in BLOCK_PHRASES:
        if phrase in title:
            return True, f"block page ({phrase})"

    body = soup.body or soup
    body_text = clean_text(body.get_text(' '))
    if not body_text and body.find(True) is None:
        return True, "empty page"

    if len(body_text) <= BLOCK_PAGE_MAX_CHARS:
        if soup.select_one(CAPTCHA_SELECTORS) is not None:
            return True, "captcha detected"
        lowered = body_text.lower()
        for phrase in BLOCK_PHRASES:
            if phrase in lowered:
                return True, f"block page ({phrase})"

    return False, None


def extract_blocks(root: Tag) -> List[str]:
    """
    Render article body elements as text blocks in document order.

    Headers become `##`/`###` lines and list items `- ` lines. Nested
    block elements are rendered once, by their outermost block.
    """
    for noise in root.find_all(NOISE_TAGS):
        noise.decompose()

    blocks = []
    for el in root.find_all(list(BLOCK_PREFIXES)):
        if _has_block_ancestor(el, root):
            continue
        text = clean_text(el.get_text(' '))
        if text:
            blocks.append(BLOCK_PREFIXES[el.name] + text)

    if not blocks:
        text = clean_text(root.get_text(' '))
        if text:
            blocks.append(text)
    return blocks


def _has_block_ancestor(el: Tag, root: Tag) -> bool:
    for parent in el.parents:
        if parent is root:
            return False
        if parent.name in BLOCK_PREFIXES:
            return True
    return False


def extract_tags(soup: BeautifulSoup, selector: Optional[str]) -> List[str]:
    """Article tag labels, without leading '#'."""
    return [tag.lstrip('#').strip() for tag in select_all_text(soup, selector) if tag.lstrip('#').strip()]


def render_article_text(content: ArticleContent) -> str:
    """
    Render an article as plain text.

    Layout:
        # Title
        Subtitle
        Author: name | Date: date
        blocks...
        Tags: a, b
    """
    parts = []
    if content.title:
        parts.append(f"# {content.title}")
    if content.subtitle:
        parts.append(content.subtitle)

    meta = []
    if content.author:
        meta.append(f"Author: {content.author}")
    if content.published:
        meta.append(f"Date: {content.published}")
    if meta:
        parts.append(' | '.join(meta))

    parts.extend(content.blocks)

    if content.tags:
        parts.append(f"Tags: {', '.join(content.tags)}")
    return '\n\n'.join(parts)


def extract_article(soup: BeautifulSoup, selectors: ArticleSelectors) -> Optional[ArticleContent]:
    """
    Extract an article page with the given selectors.

    Returns:
        ArticleContent, or None when the content container is missing
    """
    root = soup.select_one(selectors.content)
    if root is None:
        return None

    content = ArticleContent(
        title=select_text(soup, selectors.title),
        subtitle=select_text(soup, selectors.subtitle),
        author=select_text(soup, selectors.author) or None,
        published=extract_date_value(soup, selectors.date),
        tags=extract_tags(soup, selectors.tags),
    )
    content.blocks = extract_blocks(root)
    content.text = render_article_text(content)
    return content

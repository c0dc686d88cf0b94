"""
Site configurations for all 11 crypto news sources.

Each site has a SiteConfig that defines:
- The listing entry URL
- Listing selectors (news cards) and article selectors (article pages)
- Per-site options such as scroll count and cookies

No scraper may hardcode a selector outside this module.
"""

from .base import SiteConfig, ListingSelectors, ArticleSelectors


# Shared fallbacks for sites whose markup changes often
GENERIC_AUTHOR = ".author, .byline, [class*='author'], [class*='byline']"
GENERIC_DATE = "time, .date, .timestamp, [datetime], [class*='date'], [class*='time']"
GENERIC_TAGS = ".tags a, .topics a, .categories a, [class*='tag'] a, [class*='topic'] a"


# ============================================================
# SITE CONFIGURATIONS
# ============================================================

SITES = {
    'cryptonews': SiteConfig(
        site_id='cryptonews',
        name='CryptoNews',
        base_url='https://cryptonews.com/news/',
        listing=ListingSelectors(
            container='.archive-template-latest-news-list',
            item='.archive-template-latest-news__item',
            title='.archive-template-latest-news__title',
            description='.archive-template-latest-news__text',
            category='.archive-template-latest-news__category',
            date='.archive-template-latest-news__time',
            link='a.archive-template-latest-news__link',
            image='.archive-template-latest-news__bg',
        ),
        article=ArticleSelectors(
            content='.article-single__content',
            title='h1',
            subtitle='.article-single__lead',
            author='.article-single__author-link',
            date='.article-single__date',
            tags='.article-single__tags a',
        ),
        scroll_count=3,
    ),

    'cointelegraph': SiteConfig(
        site_id='cointelegraph',
        name='CoinTelegraph',
        base_url='https://cointelegraph.com/tags/cryptocurrencies',
        listing=ListingSelectors(
            container='.posts-listing__list',
            item='.post-card-inline',
            title='.post-card-inline__title',
            description='.post-card-inline__text',
            category='.post-card-inline__badge',
            author='.post-card-inline__author',
            date='time',
            link='a.post-card-inline__title-link',
            image='.lazy-image__img',
        ),
        article=ArticleSelectors(
            content='.post-content',
            title='h1.post__title, h1.post-title',
            subtitle='.post__lead, .post-lead',
            author='.post-meta__author-name, .post-author',
            date='.post-meta__publish-date, .post-date',
            tags='.tags-list__item',
        ),
        scroll_count=3,
    ),

    'coindesk': SiteConfig(
        site_id='coindesk',
        name='CoinDesk',
        base_url='https://www.coindesk.com/latest-crypto-news',
        listing=ListingSelectors(
            container='main, .at-content-wrapper, .content-wrapper, body',
            item="article, .article, .story, .news-item, a[href*='/']",
            title='h2, h3, .headline, .title, a',
            description='.description, .excerpt, .summary, p',
            category=".category, .tag, [class*='category'], [class*='tag']",
            author=GENERIC_AUTHOR,
            date="time, .date, .timestamp, [class*='date'], [class*='time']",
            link='a[href]',
            image="img, [class*='image']",
        ),
        article=ArticleSelectors(
            content='article, .article-content, .article-body, .content, main',
            title='h1, .article-title, .title',
            subtitle='h2, .subtitle, .description, .excerpt',
            author=GENERIC_AUTHOR,
            date="time, .date, [class*='date'], [class*='time']",
            tags=".tags a, [class*='tag'] a, a[href*='tag']",
        ),
    ),

    'decrypt': SiteConfig(
        site_id='decrypt',
        name='Decrypt',
        base_url='https://decrypt.co/news/cryptocurrencies',
        listing=ListingSelectors(
            container='main, .content-wrapper, .articles-wrapper, .posts-container',
            item='article, .article, .post, .card, .news-item',
            title="h2, h3, .title, .headline, [class*='title']",
            description="p, .description, .excerpt, .summary, [class*='description']",
            category=".category, .tag, .topic, [class*='category'], [class*='tag']",
            author=GENERIC_AUTHOR,
            date=GENERIC_DATE,
            link='a[href]',
            image="img, [class*='image'], [class*='img']",
        ),
        article=ArticleSelectors(
            content='.article-content, .post-content, .entry-content, article, .content',
            title="h1, .article-title, .post-title, .headline, [class*='title']",
            subtitle="h2, .subtitle, .description, .excerpt, [class*='subtitle'], [class*='description']",
            author=GENERIC_AUTHOR,
            date=GENERIC_DATE,
            tags=GENERIC_TAGS,
        ),
        scroll_count=3,
    ),

    'theblock': SiteConfig(
        site_id='theblock',
        name='The Block',
        base_url='https://www.theblock.co/latest',
        listing=ListingSelectors(
            container='main, .content-wrapper, .articles-wrapper',
            item='article, .article, .post',
            title='h2, h3, .title, .headline',
            description='p, .description, .excerpt, .summary',
            category='.category, .tag, .topic',
            author='.author, .byline',
            date='time, .date, .timestamp',
            link='a[href]',
            image='img',
        ),
        article=ArticleSelectors(
            content='.article-content, .post-content, .entry-content, article',
            title='h1, .article-title, .post-title',
            subtitle='h2, .subtitle, .description',
            author='.author, .byline',
            date='time, .date, .timestamp',
            tags='.tags a, .topics a',
        ),
        cookies=(('consent', 'true'), ('visited_before', 'true')),
    ),

    'ambcrypto': SiteConfig(
        site_id='ambcrypto',
        name='AMBCrypto',
        base_url='https://ambcrypto.com/category/new-news/',
        listing=ListingSelectors(
            container='.main-content, .content-area, main, .articles-container',
            item='article, .post, .article, .news-item, .card',
            title="h2, h3, .title, .entry-title, [class*='title']",
            description="p, .excerpt, .description, [class*='excerpt'], [class*='description']",
            category=".category, .tag, [class*='category'], [class*='tag']",
            author=GENERIC_AUTHOR,
            date="time, .date, [datetime], [class*='date'], [class*='time']",
            link='a[href]',
            image="img, [class*='image'], [class*='img']",
        ),
        article=ArticleSelectors(
            content='.entry-content, .article-content, .post-content, article, .content',
            title="h1, .entry-title, .article-title, .post-title, [class*='title']",
            subtitle="h2, .subtitle, .description, [class*='subtitle'], [class*='description']",
            author=GENERIC_AUTHOR,
            date="time, .date, [datetime], [class*='date'], [class*='time']",
            tags=GENERIC_TAGS,
        ),
    ),

    'bitcoinmagazine': SiteConfig(
        site_id='bitcoinmagazine',
        name='Bitcoin Magazine',
        base_url='https://bitcoinmagazine.com/articles',
        listing=ListingSelectors(
            container='#tdi_52.td_block_inner.td-mc1-wrap',
            item='.td_module_flex.td_module_flex_1.td_module_wrap.td-animation-stack.td-cpt-post',
            title='.entry-title.td-module-title a',
            description='.td-excerpt',
            category='.td-post-category',
            author='.td-post-author-name a',
            date='.td-post-date time',
            link='.entry-title.td-module-title a[href]',
            image='.td-module-thumb .entry-thumb',
            video_indicator='.td-video-play-ico',
        ),
        article=ArticleSelectors(
            content='.tdb_single_content .tdb-block-inner',
            title='h1.tdb-title-text',
            subtitle='.tdb_single_subtitle p',
            author='.tdb-author-name',
            date='.tdb_single_date time',
            tags='.tdb_single_tags .tdb-tags a',
        ),
        scroll_count=3,
    ),

    'bitcoincom': SiteConfig(
        site_id='bitcoincom',
        name='Bitcoin.com News',
        base_url='https://news.bitcoin.com/category/crypto-news/',
        listing=ListingSelectors(
            container='.sc-htSjYp, .sc-cYxCiX, .sc-fGGoSf',
            item='.sc-jbVRWv, .sc-eXGYID, .sc-bCgkFR',
            title='.sc-hpRSGa, .sc-BoTHd, h5, h6',
            description='.sc-eZiHJD, p',
            date='.sc-wrHXg',
            link='.sc-hnwOTO',
            image='img',
        ),
        article=ArticleSelectors(
            content='.article__body',
            title='h1, .article__title',
            author='.article__author-name',
            date='time.article__date',
            tags='.article__tags a',
        ),
    ),

    'beincrypto': SiteConfig(
        site_id='beincrypto',
        name='BeInCrypto',
        base_url='https://beincrypto.com/news/',
        listing=ListingSelectors(
            container='.flex.flex-col.gap-y-6, .flex.flex-wrap.-mx-3',
            item="[data-el='bic-c-news-big'], .flex.flex-col.gap-y-2.pb-6",
            title='h5 a, h3.font-bold',
            description='p',
            category="[data-el='bic-category'], .category",
            author="[data-el='bic-author-meta'] a",
            date='time',
            link='h5 a, a.block, a.hover\\:no-underline',
            image='img',
            content_type="[data-el='bic-article-type'], .tpw",
        ),
        article=ArticleSelectors(
            content='.entry-content-inner',
            title='h1.text-3xl',
            subtitle='.text-xl.text-gray-700',
            author="[data-el='bic-author-meta'] a",
            date="[data-el='bic-author-meta'] time",
            tags='.flex.flex-wrap.gap-x-3 a',
        ),
        scroll_count=3,
    ),

    'watcherguru': SiteConfig(
        site_id='watcherguru',
        name='Watcher.Guru',
        base_url='https://watcher.guru/news/?c=2',
        listing=ListingSelectors(
            container='.cnvs-block-posts .cs-posts-area',
            item='article.post',
            title='.cs-entry__title span',
            category='.cs-meta-category ul.post-categories li a',
            author='.cs-entry__author-meta a',
            date='.cs-meta-date',
            link='.cs-overlay-link',
            image='.cs-overlay-background img',
        ),
        article=ArticleSelectors(
            content='#primary.cs-content-area, .cs-entry__content-wrap, .entry-content',
            title='h1.cs-entry__title span',
            author='.cs-entry__author-meta a',
            date='.cs-meta-date',
            tags='.cs-entry__tags a',
        ),
        scroll_count=3,
    ),

    'cryptoslate': SiteConfig(
        site_id='cryptoslate',
        name='CryptoSlate',
        base_url='https://cryptoslate.com/news/',
        listing=ListingSelectors(
            container='.list-feed, .news-feed, main',
            item='.list-post, article',
            title='h2, .title',
            description='.excerpt, p',
            category='.post-meta .category, .category',
            author='.post-meta .author, .author',
            date='time, .post-meta .date',
            link='a[href]',
            image='img',
        ),
        article=ArticleSelectors(
            content='.post-box, .article-content, article',
            title='h1',
            subtitle='.post-subheading, .excerpt',
            author='.author-info .name, .author',
            date='time',
            tags='.posted-in a, .tags a',
        ),
        scroll_count=3,
    ),
}


# ============================================================
# HELPER FUNCTIONS
# ============================================================

def get_site_config(site_key: str) -> SiteConfig:
    """
    Get configuration for a site by its key.

    Args:
        site_key: Site identifier (e.g., 'coindesk', 'theblock')

    Returns:
        SiteConfig for the site

    Raises:
        KeyError: If site_key is not found
    """
    if site_key not in SITES:
        valid_keys = ', '.join(sorted(SITES.keys()))
        raise KeyError(f"Unknown site: '{site_key}'. Valid sites: {valid_keys}")
    return SITES[site_key]


def get_enabled_sites() -> dict:
    """Get all enabled sites."""
    return {k: v for k, v in SITES.items() if v.enabled}


def list_sites() -> list:
    """List all site keys."""
    return list(SITES.keys())


def get_site_summary() -> list:
    """Get a summary of all sites for display."""
    summary = []
    for key, config in SITES.items():
        summary.append({
            'key': key,
            'name': config.name,
            'enabled': config.enabled,
            'url': config.base_url,
            'scroll_count': config.scroll_count,
        })
    return summary

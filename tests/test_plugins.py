"""Tests for the built-in plugins."""

import asyncio
from datetime import datetime, timezone

import pytest

from pressline.config import SiteConfig
from pressline.engine import TemplateEngine
from pressline.exceptions import TemplateError
from pressline.plugins import (
    AvatarPlugin,
    JemojiPlugin,
    MentionsPlugin,
    RedirectFromPlugin,
    SeoPlugin,
    builtin_plugins,
    list_builtin_plugins,
)
from pressline.plugins.avatar import avatar_tag, avatar_url, sanitize_username
from pressline.plugins.base import GeneratorPriority
from pressline.plugins.jemoji import emojify, has_emoji
from pressline.plugins.mentions import mentionify
from pressline.plugins.redirect_from import output_path, redirect_html
from pressline.plugins.seo import json_ld, seo_metadata, seo_tags
from pressline.renderer import DocumentRenderer
from pressline.site import Document, Site


def render(engine, source, context=None):
    return asyncio.run(engine.render(source, context or {}))


# =============================================================================
# Avatar
# =============================================================================


@pytest.mark.parametrize(
    "username,expected",
    [
        ("octocat", "octocat"),
        ("octo--cat", "octo-cat"),
        ("-edge-", "edge"),
        ('"><script>alert(1)</script>', "scriptalert1script"),
        ("a" * 50, "a" * 39),
        ("a" * 38 + "-b", "a" * 38),
    ],
)
def test_sanitize_username(username, expected):
    assert sanitize_username(username) == expected


def test_avatar_markup():
    html = avatar_tag("octocat")
    assert html == (
        '<img class="avatar avatar-small" '
        'src="https://avatars.githubusercontent.com/octocat?v=4&amp;s=80" alt="octocat" '
        'srcset="https://avatars.githubusercontent.com/octocat?v=4&amp;s=80 2x" '
        'width="40" height="40" />'
    )
    assert avatar_tag("---") == ""
    assert avatar_url("octocat", 20) == "https://avatars.githubusercontent.com/octocat?v=4&s=20"


def test_avatar_tag_literal_and_variable(tmp_path):
    site = Site(tmp_path)
    engine = TemplateEngine(site)
    AvatarPlugin().register(engine, site)

    literal = render(engine, '{% avatar "hubot" size=20 %}')
    assert 'alt="hubot"' in literal
    assert 's=40' in literal
    assert 'width="20"' in literal

    variable = render(engine, "{% avatar page.author %}", {"page": {"author": "octo<cat>"}})
    assert 'alt="octocat"' in variable
    assert "<cat>" not in variable


def test_avatar_tag_requires_username(tmp_path):
    site = Site(tmp_path)
    engine = TemplateEngine(site)
    AvatarPlugin().register(engine, site)
    with pytest.raises(TemplateError, match="avatar: a username argument is required"):
        render(engine, "{% avatar %}")


# =============================================================================
# Mentions
# =============================================================================


def test_mentionify_links_mentions():
    assert mentionify("hi @octocat!") == (
        'hi <a href="https://github.com/octocat" class="user-mention">@octocat</a>!'
    )
    assert mentionify("@a and @b", "https://gitlab.com/").count("https://gitlab.com/") == 2


@pytest.mark.parametrize(
    "text",
    [
        "mail me at user@example.com",
        '<a href="/x">@octocat</a>',
        '<img alt="@octocat">',
    ],
)
def test_mentionify_skips_emails_links_and_tags(text):
    assert mentionify(text) == text


def test_mentionify_blank():
    assert mentionify(None) == ""
    assert mentionify("") == ""


def test_mentions_plugin_filter_and_hook(tmp_path):
    site = Site(tmp_path, {"mentions": {"base_url": "https://example.com"}})
    engine = TemplateEngine(site)
    site.plugins.register_all([MentionsPlugin()], engine, site)
    renderer = DocumentRenderer(site, engine)

    assert render(engine, "{{ '@ada' | mentionify }}") == (
        '<a href="https://example.com/ada" class="user-mention">@ada</a>'
    )

    md = asyncio.run(renderer.render_document(Document("note.md", content="Thanks @ada")))
    assert md == '<p>Thanks <a href="https://example.com/ada" class="user-mention">@ada</a></p>'

    html = asyncio.run(renderer.render_document(Document("note.html", content="Thanks @ada")))
    assert html == "Thanks @ada"


# =============================================================================
# Redirect from
# =============================================================================


@pytest.mark.parametrize(
    "url,expected",
    [
        ("/", "index.html"),
        ("/old/", "old/index.html"),
        ("/old", "old.html"),
        ("/v1.2/page", "v1.2/page.html"),
        ("/feed.xml", "feed.xml"),
    ],
)
def test_output_path(url, expected):
    assert output_path(url) == expected


def test_redirect_html_escapes_target():
    html = redirect_html('/a"b<c>')
    assert 'href="/a&#34;b&lt;c&gt;"' in html
    assert 'window.location.href="/a\\"b\\x3cc\\x3e";' in html


def test_redirect_generator(tmp_path):
    site = Site(tmp_path, {"baseurl": "/blog"})
    new = Document("new.md", url="/new/", data={"redirect_from": ["/old", "older/"]})
    gone = Document("gone.md", url="/gone.html", data={"redirect_to": "https://example.com/"})
    moved = Document("moved.md", url="/moved/", data={"redirect_to": "elsewhere/"})
    site.add_page(new)
    site.add_page(gone)
    site.add_page(moved)

    plugin = RedirectFromPlugin()
    assert plugin.priority == GeneratorPriority.LOW

    result = plugin.generate(site, TemplateEngine(site))
    files = {f.path: f.content for f in result.files}

    assert set(files) == {"old.html", "older/index.html", "gone.html", "moved/index.html"}
    assert 'href="/blog/new/"' in files["old.html"]
    assert 'href="https://example.com/"' in files["gone.html"]
    assert 'href="/blog/elsewhere/"' in files["moved/index.html"]
    assert gone.data["output"] is False
    assert moved.data["output"] is False
    assert "output" not in new.data


def test_redirect_from_accepts_single_string(tmp_path):
    site = Site(tmp_path)
    site.add_post(Document("_posts/2024-01-01-a.md", url="/a/", data={"redirect_from": "/legacy"}))
    result = RedirectFromPlugin().generate(site, TemplateEngine(site))
    assert [f.path for f in result.files] == ["legacy.html"]


# =============================================================================
# SEO
# =============================================================================


def seo_config(**extra):
    return SiteConfig(title="My Blog", url="https://example.com", baseurl="/blog", **extra)


def test_seo_tags_for_article():
    config = seo_config(twitter={"username": "pressline"}, logo="/logo.png")
    page = {
        "title": 'Tips & "Tricks"',
        "url": "/2024/tips/",
        "date": datetime(2024, 1, 2, tzinfo=timezone.utc),
        "description": "<b>bold</b>",
        "image": "/img.png",
        "author": {"name": "Ada"},
    }

    out = seo_tags(page, config)

    assert "<title>Tips &amp; &#34;Tricks&#34; | My Blog</title>" in out
    assert '<meta name="description" content="&lt;b&gt;bold&lt;/b&gt;">' in out
    assert '<link rel="canonical" href="https://example.com/blog/2024/tips/">' in out
    assert '<meta property="og:type" content="article">' in out
    assert '<meta property="og:image" content="https://example.com/blog/img.png">' in out
    assert '<meta name="twitter:card" content="summary_large_image">' in out
    assert '<meta name="twitter:site" content="@pressline">' in out
    assert '<meta name="author" content="Ada">' in out
    assert '<meta property="article:published_time" content="2024-01-02T00:00:00+00:00">' in out
    assert "<b>" not in out


def test_seo_json_ld_for_article():
    meta = seo_metadata(
        {"title": "Post", "url": "/p/", "layout": "post", "author": "Ada"},
        seo_config(logo="https://cdn.example.com/logo.png"),
    )
    data = json_ld(meta)
    assert data["@type"] == "BlogPosting"
    assert data["headline"] == "Post | My Blog"
    assert data["mainEntityOfPage"] == {"@type": "WebPage", "@id": "https://example.com/blog/p/"}
    assert data["author"] == {"@type": "Person", "name": "Ada"}
    assert data["publisher"]["logo"]["url"] == "https://cdn.example.com/logo.png"


def test_seo_tags_for_plain_page():
    out = seo_tags({"title": "About", "url": "/about/"}, seo_config(author="Site Author"))
    assert '<meta property="og:type" content="website">' in out
    assert '<meta name="twitter:card" content="summary">' in out
    assert 'name="author"' not in out
    assert '"@type": "WebSite"' in out
    assert '"name": "About | My Blog"' in out


def test_seo_output_cannot_break_out_of_script():
    out = seo_tags({"title": "</script><script>alert(1)</script>"}, seo_config())
    assert out.count("</script>") == 1
    assert "<script>alert" not in out


def test_seo_tag_in_template(tmp_path):
    site = Site(tmp_path, {"title": "Home", "description": "Welcome"})
    engine = TemplateEngine(site)
    SeoPlugin().register(engine, site)

    out = render(engine, "{% seo %}", {"page": {"title": "Home"}})
    assert "<title>Home</title>" in out
    assert '<meta name="description" content="Welcome">' in out

    without_title = render(engine, "{% seo title=false %}", {"page": {"title": "Home"}})
    assert "<title>" not in without_title
    assert '<meta property="og:title" content="Home">' in without_title

    with pytest.raises(TemplateError, match="seo: unsupported argument"):
        render(engine, "{% seo bogus %}")


# =============================================================================
# Emoji
# =============================================================================


def test_emojify():
    assert emojify("ok :thumbsup:") == "ok \U0001F44D"
    assert emojify("keep :no_such_emoji_here:") == "keep :no_such_emoji_here:"
    assert emojify(None) == ""
    assert has_emoji("thumbsup")
    assert not has_emoji("no_such_emoji_here")


def test_jemoji_plugin_registers_filter(tmp_path):
    site = Site(tmp_path)
    engine = TemplateEngine(site)
    site.plugins.register_all([JemojiPlugin()], engine, site)
    assert render(engine, "{{ 'ship it :thumbsup:' | emojify }}") == "ship it \U0001F44D"


# =============================================================================
# Built-in selection
# =============================================================================


def test_builtin_plugins_all_enabled_by_default(tmp_path):
    plugins = builtin_plugins(Site(tmp_path).config)
    assert [type(p) for p in plugins] == [
        AvatarPlugin,
        MentionsPlugin,
        RedirectFromPlugin,
        SeoPlugin,
        JemojiPlugin,
    ]
    assert list_builtin_plugins() == [
        "pressline-avatar",
        "pressline-mentions",
        "pressline-redirect-from",
        "pressline-seo",
        "pressline-jemoji",
    ]


def test_builtin_plugins_filtered_by_config_and_aliases(tmp_path):
    config = Site(tmp_path, {"plugins": ["jekyll-avatar", "pressline-redirect-from"]}).config
    assert [type(p) for p in builtin_plugins(config)] == [AvatarPlugin, RedirectFromPlugin]

    config = Site(tmp_path, {"plugins": ["jemoji", "jekyll-seo-tag"]}).config
    assert [type(p) for p in builtin_plugins(config)] == [SeoPlugin, JemojiPlugin]


def test_builtin_plugins_are_fresh_instances(tmp_path):
    config = Site(tmp_path).config
    assert builtin_plugins(config)[0] is not builtin_plugins(config)[0]

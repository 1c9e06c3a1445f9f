"""
Anki Markdown
=============
Reviews Anki cards as markdown. Card HTML fetched through AnkiConnect is
stripped of CSS/JS, translated to markdown, and its images are inlined as
data: URLs read from Anki's collection.media, so the result renders in
any markdown viewer without access to Anki's files.

    from anki_markdown.markdown import convert
    from anki_markdown.media import inline_media

    markdown = await inline_media(convert(card_html), store)
"""

__version__ = "1.0.0"

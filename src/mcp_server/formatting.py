"""Plain-text rendering of articles for resource reads and tool results."""

from shared.models import Article

UNKNOWN_AUTHOR = "Unknown"
UNCATEGORIZED = "Uncategorized"
NO_CATEGORY = "None"
NO_TAGS = "None"
UNPUBLISHED = "Unpublished"


def truncate(text: str, length: int) -> str:
    """Cut text to ``length`` characters, marking the cut with an ellipsis."""
    if len(text) <= length:
        return text
    return text[:length].rstrip() + "..."


def preview(text: str, length: int) -> str:
    """Single-line truncated preview."""
    return truncate(" ".join(text.split()), length)


def format_article(article: Article) -> str:
    """
    Render an article as structured text.

    Layout: title heading, then author, category, tags and publication
    lines, then the full content.
    """
    tags = ", ".join(article.tag_list) or NO_TAGS
    published = article.published_at.isoformat() if article.published_at else UNPUBLISHED
    return (
        f"# {article.title}\n\n"
        f"Author: {article.author or UNKNOWN_AUTHOR}\n"
        f"Category: {article.category or UNCATEGORIZED}\n"
        f"Tags: {tags}\n"
        f"Published: {published}\n\n"
        f"{article.content}"
    )


def format_search_results(query: str, articles: list[Article], total: int, preview_length: int) -> str:
    """
    Render a search digest.

    ``total`` counts every match; ``articles`` is the returned page.
    """
    if not articles:
        return f"No articles found for query: {query}"

    entries = [
        f"- {a.title} ({a.slug})\n"
        f"  Category: {a.category or NO_CATEGORY}\n"
        f"  {preview(a.content, preview_length)}"
        for a in articles
    ]
    header = f"Found {total} article(s):"
    if total > len(articles):
        header += f" (showing {len(articles)})"
    return header + "\n\n" + "\n\n".join(entries)

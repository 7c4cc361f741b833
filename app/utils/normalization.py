"""
Text normalization utilities for slugs and search queries
"""
import re
import unicodedata


def normalize_text(text: str) -> str:
    """
    Normalize text for consistency:
    - Remove accents
    - Convert to lowercase
    - Remove extra whitespace
    - Remove special characters
    """
    if not text:
        return ""

    # Normalize unicode and drop combining marks (ū -> u)
    text = unicodedata.normalize('NFKD', text)
    text = ''.join(char for char in text if not unicodedata.combining(char))

    text = text.lower()
    text = ' '.join(text.split())

    # Keep alphanumeric, spaces, hyphens and underscores
    text = re.sub(r'[^a-z0-9\s\-_]', '', text)

    return text.strip()


def slugify(text: str, separator: str = "-") -> str:
    """
    URL-safe slug: "Laptops & Computers" -> "laptops-computers"

    Runs of whitespace, hyphens and underscores collapse into one separator.
    """
    normalized = normalize_text(text)
    slug = re.sub(r'[\s\-_]+', separator, normalized)
    return slug.strip(separator)


def normalize_query(query: str) -> str:
    """Trim and lowercase a search query, keeping diacritics"""
    if not query:
        return ""
    return ' '.join(query.split()).lower()


def query_words(text: str, min_length: int = 4) -> list[str]:
    """Distinct words of at least ``min_length`` characters, in order"""
    words = []
    for word in normalize_text(text).split():
        if len(word) >= min_length and word not in words:
            words.append(word)
    return words

from typing import Iterable

def excerpt(text: str, max_len: int = 100) -> str:
    return text[:max_len]

def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)

def count_matches(text: str, keywords: Iterable[str]) -> int:
    lowered = text.lower()
    return sum(1 for keyword in keywords if keyword in lowered)

"""Topic coverage: weakest-topic picks, the user's focus override, and chart inputs."""
from collections import Counter

from db.collections import FOCUS_KEY
from db.store import KeyValueStore

FOCUS_LIMIT = 3
MIN_TAG_SOLVES = 3


def tag_counts(solved: list[dict]) -> dict[str, int]:
    counts: Counter = Counter()
    for p in solved:
        for t in p.get("tags") or []:
            counts[t] += 1
    return dict(counts)


def pick_focus_tags(solved: list[dict], limit: int = FOCUS_LIMIT) -> list[str]:
    """Tags with the lowest share of solved problems, ignoring tags seen fewer than 3 times."""
    total = max(len(solved), 1)
    candidates = [(tag, c / total) for tag, c in tag_counts(solved).items() if c >= MIN_TAG_SOLVES]
    candidates.sort(key=lambda x: x[1])
    return [tag for tag, _ in candidates[:limit]]


def all_tags(solved: list[dict]) -> list[str]:
    return sorted({t for p in solved for t in (p.get("tags") or [])})


def top_tags(counts: dict[str, int], limit: int = 12) -> list[dict]:
    entries = sorted(((t, c) for t, c in counts.items() if c > 0), key=lambda x: -x[1])
    return [{"tag": t, "count": c} for t, c in entries[:limit]]


def rating_buckets(ratings: list[int], width: int = 200) -> list[dict]:
    buckets: Counter = Counter()
    for r in ratings:
        buckets[(r // width) * width] += 1
    return [{"label": f"{k}-{k + width - 1}", "count": buckets[k]} for k in sorted(buckets)]


def median_rating(ratings: list[int]) -> int:
    if not ratings:
        return 0
    a = sorted(ratings)
    m = len(a) // 2
    return a[m] if len(a) % 2 else (a[m - 1] + a[m]) // 2


# --- Focus persistence ---
def get_focus_tags(store: KeyValueStore) -> list[str] | None:
    stored = store.get([FOCUS_KEY]).get(FOCUS_KEY)
    return stored if isinstance(stored, list) else None


def set_focus_tags(store: KeyValueStore, tags: list[str]) -> list[str]:
    tags = list(dict.fromkeys(t for t in tags if t))
    store.set({FOCUS_KEY: tags})
    return tags


def toggle_focus_tag(store: KeyValueStore, tag: str) -> list[str]:
    selected = get_focus_tags(store) or []
    if tag in selected:
        selected = [t for t in selected if t != tag]
    else:
        selected = selected + [tag]
    return set_focus_tags(store, selected)


def resolve_focus_tags(store: KeyValueStore, solved: list[dict]) -> list[str]:
    """A non-empty stored selection is the user's override; otherwise pick automatically.

    The automatic pick is saved only when nothing was ever stored; an empty stored
    list stays empty.
    """
    stored = get_focus_tags(store)
    if stored:
        return stored
    auto = pick_focus_tags(solved)
    if stored is None:
        set_focus_tags(store, auto)
    return auto

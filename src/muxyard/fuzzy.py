"""模糊过滤 - 子序列匹配 + 打分排序

返回结果保留候选项的原始下标（用于回查选中项）和命中字符的位置（用于高亮）。
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .models import Repository, Session

FIRST_CHAR_MATCH_BONUS = 10
MATCH_FOLLOWING_SEPARATOR_BONUS = 20
CAMEL_CASE_MATCH_BONUS = 20
ADJACENT_MATCH_BONUS = 5
UNMATCHED_LEADING_CHAR_PENALTY = -5
MAX_UNMATCHED_LEADING_CHAR_PENALTY = -15
UNMATCHED_CHAR_PENALTY = -1
SEPARATORS = "/-_ .\\:"


@dataclass(frozen=True)
class FuzzyMatch:
    """单个命中项

    Attributes:
        index: 候选项在原列表中的下标
        text: 参与匹配的文本
        score: 分数（越高越靠前）
        matched_indexes: 命中字符在 text 中的位置（升序）
    """
    index: int
    text: str
    score: int = 0
    matched_indexes: tuple[int, ...] = ()


def _chars_equal(a: str, b: str) -> bool:
    return a == b or a.lower() == b.lower()


def match(query: str, candidate: str, index: int = 0) -> Optional[FuzzyMatch]:
    """query 是否为 candidate 的（忽略大小写）子序列，是则打分"""
    if not query:
        return FuzzyMatch(index=index, text=candidate)

    positions: list[int] = []
    score = 0
    pos = 0
    for needle in query:
        while pos < len(candidate) and not _chars_equal(candidate[pos], needle):
            pos += 1
        if pos >= len(candidate):
            return None

        if pos == 0:
            score += FIRST_CHAR_MATCH_BONUS
        else:
            prev = candidate[pos - 1]
            if prev in SEPARATORS:
                score += MATCH_FOLLOWING_SEPARATOR_BONUS
            elif prev.islower() and candidate[pos].isupper():
                score += CAMEL_CASE_MATCH_BONUS
        if positions and positions[-1] == pos - 1:
            score += ADJACENT_MATCH_BONUS

        positions.append(pos)
        pos += 1

    score += max(positions[0] * UNMATCHED_LEADING_CHAR_PENALTY, MAX_UNMATCHED_LEADING_CHAR_PENALTY)
    score += (len(candidate) - len(positions)) * UNMATCHED_CHAR_PENALTY
    return FuzzyMatch(index=index, text=candidate, score=score, matched_indexes=tuple(positions))


def fuzzy_filter(query: str, candidates: Sequence[str]) -> list[FuzzyMatch]:
    """过滤并排序候选项

    空查询原样返回全部候选项（顺序不变）；否则只返回命中项，按分数降序，
    同分按原始下标升序。
    """
    if not query:
        return [FuzzyMatch(index=i, text=c) for i, c in enumerate(candidates)]

    matches = []
    for i, candidate in enumerate(candidates):
        found = match(query, candidate, i)
        if found is not None:
            matches.append(found)
    matches.sort(key=lambda m: (-m.score, m.index))
    return matches


def filter_sessions(query: str, sessions: Sequence[Session]) -> list[FuzzyMatch]:
    return fuzzy_filter(query, [s.name for s in sessions])


def filter_repositories(query: str, repos: Sequence[Repository]) -> list[FuzzyMatch]:
    """仓库按 "名称 路径" 匹配，名称或路径命中都算"""
    return fuzzy_filter(query, [r.search_text for r in repos])


def split_repository_highlights(
    repo: Repository, found: FuzzyMatch
) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """把 search_text 上的命中位置拆回名称和路径各自的下标"""
    offset = len(repo.name) + 1
    name_hits = tuple(i for i in found.matched_indexes if i < len(repo.name))
    path_hits = tuple(i - offset for i in found.matched_indexes if i >= offset)
    return name_hits, path_hits

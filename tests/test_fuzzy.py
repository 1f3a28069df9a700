"""模糊过滤测试"""

from muxyard.fuzzy import (
    filter_repositories,
    filter_sessions,
    fuzzy_filter,
    match,
    split_repository_highlights,
)
from muxyard.models import Repository, Session


def is_subsequence(positions, text, query):
    return ''.join(text[i] for i in positions).lower() == query.lower()


class TestFuzzyFilter:
    """fuzzy_filter 测试"""

    def test_empty_query_keeps_order(self):
        found = fuzzy_filter("", ["beta", "alpha", "gamma"])
        assert [m.index for m in found] == [0, 1, 2]
        assert all(m.matched_indexes == () for m in found)

    def test_no_match(self):
        assert fuzzy_filter("zz", ["alpha", "beta"]) == []

    def test_better_match_first(self):
        found = fuzzy_filter("ab", ["xaxb", "ab"])
        assert [m.text for m in found] == ["ab", "xaxb"]

    def test_case_insensitive(self):
        assert match("API", "my-api") is not None

    def test_matched_indexes_are_in_bounds_subsequence(self):
        candidates = ["muxyard-dev", "notes", "dotfiles", "my_api_server"]
        for query in ("d", "mx", "api", "tes", "s"):
            for found in fuzzy_filter(query, candidates):
                assert all(0 <= i < len(found.text) for i in found.matched_indexes)
                assert list(found.matched_indexes) == sorted(found.matched_indexes)
                assert is_subsequence(found.matched_indexes, found.text, query)

    def test_separator_bonus(self):
        # "d" 紧跟分隔符的候选项排在中间命中之前
        found = fuzzy_filter("d", ["odd", "x-d"])
        assert found[0].text == "x-d"


class TestDomainFilters:
    """会话 / 仓库过滤测试"""

    def test_filter_sessions_keeps_original_index(self):
        sessions = [Session("web"), Session("dev"), Session("docs")]
        found = filter_sessions("do", sessions)
        assert [sessions[m.index].name for m in found] == ["docs"]

    def test_repository_matches_on_path(self):
        repos = [Repository("api", "/src/api"), Repository("web", "/work/web")]
        found = filter_repositories("work", repos)
        assert [repos[m.index].name for m in found] == ["web"]

    def test_split_highlights_into_path(self):
        repo = Repository("api", "/src/api")
        found = match("src", repo.search_text)
        name_hits, path_hits = split_repository_highlights(repo, found)
        assert name_hits == ()
        assert path_hits == (1, 2, 3)
        assert "".join(repo.path[i] for i in path_hits) == "src"

    def test_split_highlights_into_name(self):
        repo = Repository("api", "/src/api")
        name_hits, path_hits = split_repository_highlights(repo, match("a", repo.search_text))
        assert name_hits == (0,)
        assert path_hits == ()

"""
Unit tests for tagprune.classify module.
"""

import pytest

from tagprune.classify import TagRules, TagPlan, classify_tags, should_delete


class TestDefaultRules:
    """Tests for the default release-line rules."""

    @pytest.mark.unit
    @pytest.mark.parametrize("tag", ["v35", "v35.1", "v36.0.2", "v38.10.1", "v350"])
    def test_plain_protected_versions_kept(self, tag):
        assert not should_delete(tag, TagRules())

    @pytest.mark.unit
    @pytest.mark.parametrize("tag", ["v35.1-beta", "v36.0.0rc1", "v37_hotfix", "v38.1.0-SNAPSHOT"])
    def test_suffixed_protected_versions_deleted(self, tag):
        assert should_delete(tag, TagRules())

    @pytest.mark.unit
    @pytest.mark.parametrize("tag", ["v1.0", "v34.9", "v39.0", "vnext", "v"])
    def test_other_version_tags_deleted(self, tag):
        assert should_delete(tag, TagRules())

    @pytest.mark.unit
    @pytest.mark.parametrize("tag", ["release-1", "V35-beta", "1.0.0", "stable"])
    def test_non_version_tags_kept(self, tag):
        assert not should_delete(tag, TagRules())


class TestClassifyTags:
    """Tests for classify_tags."""

    @pytest.mark.unit
    def test_split_preserves_order(self):
        """Test that both lists keep input order."""
        tags = ["v1.0", "v35.1", "release", "v36.2-rc", "v37.0", "v2.0"]

        plan = classify_tags(tags)

        assert plan.keep == ["v35.1", "release", "v37.0"]
        assert plan.delete == ["v1.0", "v36.2-rc", "v2.0"]
        assert plan.total == 6

    @pytest.mark.unit
    def test_empty(self):
        plan = classify_tags([])

        assert plan == TagPlan()
        assert plan.total == 0

    @pytest.mark.unit
    def test_custom_rules(self):
        """Test protected prefixes of different lengths."""
        rules = TagRules(protected_prefixes=("release-2024", "r"), delete_prefix="release-")

        plan = classify_tags(["release-2024.1", "release-2024.1b", "release-2023.9", "r5", "r5x", "x1"], rules)

        assert plan.keep == ["release-2024.1", "r5", "x1"]
        assert plan.delete == ["release-2024.1b", "release-2023.9", "r5x"]

    @pytest.mark.unit
    def test_empty_delete_prefix_keeps_unprotected(self):
        """Test that an empty delete prefix only removes suffixed protected tags."""
        rules = TagRules(protected_prefixes=("v1",), delete_prefix="")

        plan = classify_tags(["v1.2", "v1.2-beta", "v2.0"], rules)

        assert plan.keep == ["v1.2", "v2.0"]
        assert plan.delete == ["v1.2-beta"]

    @pytest.mark.unit
    def test_explicit_none_rules_use_defaults(self):
        """Test that rules=None behaves like the default TagRules."""
        tags = ["v35.1", "v35.1-beta", "v2.0", "main"]

        assert classify_tags(tags, None) == classify_tags(tags, TagRules())

"""
Tests for analysis history persistence and duplicate detection
"""
from datetime import datetime, timedelta

import pytest
from werkzeug.exceptions import NotFound

from toolhub.services import analysis_history as ah

SWOT = {"toolSlug": "swot-analysis", "toolName": "SWOT Analysis", "analysisType": "swot"}


def make_request(user_id="u1", **parameters):
    return {**SWOT, "userId": user_id, "parameters": parameters}


@pytest.fixture
def history(db):
    return db["analysis_history"]


class TestDuplicateDetection:
    """Test exact and near duplicate lookups"""

    def test_no_history_is_not_duplicate(self, history):
        check = ah.check_for_duplicates(history, make_request(name="Acme"))
        assert check["isDuplicate"] is False
        assert check["shouldShowWarning"] is False

    def test_exact_match_bumps_access(self, history):
        analysis_id = ah.save_analysis_result(history, make_request(name="Acme", industry="Retail"), {"ok": 1}, {})
        check = ah.check_for_duplicates(history, make_request(name=" ACME ", industry="retail"))
        assert check["isDuplicate"] is True
        assert check["similarity"] == 1.0
        assert str(check["existingAnalysis"]["_id"]) == analysis_id
        assert history.find_one({})["accessCount"] == 2

    def test_other_users_history_is_ignored(self, history):
        ah.save_analysis_result(history, make_request(user_id="u2", name="Acme"), {"ok": 1}, {})
        assert ah.check_for_duplicates(history, make_request(name="Acme"))["isDuplicate"] is False

    def test_partial_overlap_is_not_duplicate(self, history):
        ah.save_analysis_result(history, make_request(a=1, b=2), {"ok": 1}, {})
        check = ah.check_for_duplicates(history, make_request(a=1, b=3))
        assert check["isDuplicate"] is False

    def test_key_differences_are_capped(self):
        first = {str(n): n for n in range(8)}
        assert len(ah.find_key_differences(first, {})) == 5


class TestHistoryRecords:
    """Test saving, reading and housekeeping"""

    def test_save_and_get_cached(self, history):
        analysis_id = ah.save_analysis_result(history, make_request(name="Acme"), {"strengths": []}, {"model": "gemini"})
        doc = history.find_one({})
        assert doc["regenerationCount"] == 0
        assert doc["metadata"]["userAgent"] == "Unknown"

        cached = ah.get_cached_result(history, analysis_id, "u1")
        assert cached["result"] == {"strengths": []}
        with pytest.raises(NotFound):
            ah.get_cached_result(history, analysis_id, "someone-else")

    def test_duplicate_flag_sets_regeneration_count(self, history):
        ah.save_analysis_result(history, make_request(name="Acme"), {}, {}, is_duplicate=True, original_analysis_id="x")
        assert history.find_one({})["regenerationCount"] == 1

    def test_duplicate_groups(self, history):
        for _ in range(2):
            ah.force_regenerate(history, make_request(name="Acme"), {}, {})
        ah.save_analysis_result(history, make_request(name="Other"), {}, {})
        groups = ah.get_duplicate_groups(history, "u1")
        assert len(groups) == 1
        assert len(groups[0]) == 2

    def test_cleanup_only_removes_old_duplicates(self, history):
        ah.save_analysis_result(history, make_request(name="A"), {}, {}, is_duplicate=True)
        ah.save_analysis_result(history, make_request(name="B"), {}, {}, is_duplicate=True)
        ah.save_analysis_result(history, make_request(name="C"), {}, {})
        history.update_many({}, {"$set": {"createdAt": datetime.utcnow() - timedelta(days=40)}})
        history.update_one({"inputData.name": "B"}, {"$set": {"createdAt": datetime.utcnow()}})
        assert ah.cleanup_duplicates(history, "u1", 30) == 1
        assert history.count_documents({}) == 2

    def test_stats_and_listing(self, history):
        ah.save_analysis_result(history, make_request(name="A"), {}, {})
        ah.save_analysis_result(history, make_request(name="B"), {}, {}, is_duplicate=True)
        ah.save_analysis_result(
            history, {"toolSlug": "finance-advisor", "toolName": "Finance", "userId": "u1", "parameters": {"x": 1}, "status": "failed"}, {}, {}
        )
        stats = ah.user_stats(history, "u1")
        assert stats["totalAnalyses"] == 3
        assert stats["successfulAnalyses"] == 2
        assert stats["duplicateAnalyses"] == 1
        assert stats["uniqueTools"] == 2
        assert stats["successRate"] == 66.67

        usage = ah.tool_usage_stats(history, "u1")
        assert usage[0]["toolSlug"] == "swot-analysis"
        assert usage[0]["totalUsage"] == 2

        items, total = ah.list_history(history, "u1", limit=2, offset=0)
        assert total == 3 and len(items) == 2
        items, total = ah.list_history(history, "u1", tool_slug="finance-advisor")
        assert total == 1

        export = ah.export_history(history, "u1")
        assert export["totalAnalyses"] == 3

    def test_delete_requires_owner(self, history):
        analysis_id = ah.save_analysis_result(history, make_request(name="A"), {}, {})
        with pytest.raises(NotFound):
            ah.delete_analysis(history, analysis_id, "u2")
        ah.delete_analysis(history, analysis_id, "u1")
        assert history.count_documents({}) == 0


class TestHistoryRoutes:
    """Test the history endpoints for a signed-in user"""

    def test_requires_session(self, client):
        assert client.get("/api/user/history").status_code == 401

    def test_list_get_delete(self, user_client, db):
        user_id = user_client.get("/api/auth/me").get_json()["user"]["id"]
        analysis_id = ah.save_analysis_result(db["analysis_history"], make_request(user_id=user_id, name="A"), {"r": 1}, {})

        listing = user_client.get("/api/user/history").get_json()
        assert listing["total"] == 1
        assert listing["hasMore"] is False

        stats = user_client.get("/api/user/history/stats").get_json()
        assert stats["stats"]["totalAnalyses"] == 1

        detail = user_client.get(f"/api/user/history/{analysis_id}").get_json()
        assert detail["result"] == {"r": 1}

        assert user_client.post("/api/user/history/cleanup", json={"daysOld": 0}).get_json()["deletedCount"] == 0
        assert user_client.delete(f"/api/user/history/{analysis_id}").status_code == 200
        assert user_client.get(f"/api/user/history/{analysis_id}").status_code == 404

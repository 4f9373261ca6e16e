from cloudguard.core.alert import Alert, Category, Severity, Status
from cloudguard.view.stats import category_counts, status_counts, summarize


def _alert(alert_id, status, category):
    return Alert(id=alert_id, severity=Severity.LOW, category=category, description="x", status=status)


ALERTS = [
    _alert("1", Status.NEW, Category.CVE),
    _alert("2", Status.NEW, Category.S3),
    _alert("3", Status.IN_PROGRESS, Category.CVE),
    _alert("4", Status.RESOLVED, Category.ACTIVITY),
]


def test_status_counts():
    assert status_counts(ALERTS) == {"new": 2, "acknowledged": 0, "inProgress": 1, "resolved": 1, "total": 4}


def test_status_counts_sum_to_total():
    c = status_counts(ALERTS)
    assert c["new"] + c["acknowledged"] + c["inProgress"] + c["resolved"] == c["total"]


def test_category_counts_include_zeros():
    assert category_counts(ALERTS) == {"CVE": 2, "S3": 1, "IAM": 0, "Network": 0, "Activity": 1}


def test_empty_collection():
    assert status_counts([])["total"] == 0
    assert set(category_counts([]).values()) == {0}


def test_summarize_accepts_generators():
    s = summarize(a for a in ALERTS)
    assert s["statuses"]["total"] == 4
    assert s["categories"]["CVE"] == 2

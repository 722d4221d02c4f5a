import hashlib
import json
from issue_radar.utils.logging import ForensicLogger


def read_events(path):
    with open(path) as f:
        return [json.loads(line) for line in f]


def test_prompt_is_hashed_not_stored(tmp_path):
    forensic = ForensicLogger("analyzer", log_dir=str(tmp_path))
    prompt = "Which crashes affect Windows users?"

    forensic.log_event("ANALYZE_REQUEST", "INFO", repo="acme/widgets", input_text=prompt)
    forensic.close()

    [event] = read_events(forensic.log_file)
    assert event["event_type"] == "ANALYZE_REQUEST"
    assert event["repo"] == "acme/widgets"
    assert event["input_hash"] == hashlib.sha256(prompt.encode()).hexdigest()
    assert event["input_chars"] == len(prompt)
    assert prompt not in json.dumps(event)


def test_details_are_merged(tmp_path):
    forensic = ForensicLogger("scanner", log_dir=str(tmp_path))

    forensic.log_event("SCAN_RESULT", "INFO", repo="acme/widgets", details={"status": "completed", "count": 242})
    forensic.log_event("SCAN_ERROR", "WARN", repo="acme/widgets", details={"error": "Bad gateway"})
    forensic.close()

    events = read_events(forensic.log_file)
    assert [e["event_type"] for e in events] == ["SCAN_RESULT", "SCAN_ERROR"]
    assert events[0]["count"] == 242
    assert events[1]["severity"] == "WARN"
    assert "input_hash" not in events[0]

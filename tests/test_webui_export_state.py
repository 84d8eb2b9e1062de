from talent_planner.engine.build_state import BuildState
from talent_planner.webui.export_state import build_state_payload
from talent_planner.bootstrap import load_catalog


def test_build_state_payload_shape():
    state = BuildState(load_catalog())
    state.select_commander("RI")
    state.increase("red", 1)
    payload = build_state_payload(state)

    assert "generated_at" in payload
    assert payload["app"]["max_points"] == 74
    assert {"id": "RI", "name": "Richard I"} in payload["app"]["commanders"]

    build = payload["build"]
    assert build["phase"] == "populated"
    assert build["commander_id"] == "RI"
    assert build["token"].startswith("1;RI;")
    assert build["query"] == "?" + build["token"]
    assert build["spent"] == 1
    assert build["remaining"] == 73
    assert list(build["trees"]) == ["red", "yellow", "blue"]

    red = build["trees"]["red"]
    assert red["tree"] == "Vanguard"
    assert red["nodes"][0]["value"] == 1
    assert red["nodes"][0]["can_increase"] is True
    assert build["stats"]["Attack"] == "1"
    assert build["stats"]["Health"] == "0"
    assert payload["diagnostics"] == []


def test_payload_for_empty_state():
    payload = build_state_payload(BuildState(load_catalog()))
    assert payload["app"]["title"] == "Talent Planner"
    assert payload["build"]["phase"] == "empty"
    assert payload["build"]["token"] is None
    assert payload["build"]["trees"]["red"]["nodes"] == []


def test_decimal_stats_render_without_float_noise():
    state = BuildState(load_catalog())
    state.select_commander("RI")
    for _ in range(3):
        state.increase("yellow", 1)
    state.increase("yellow", 2)
    state.increase("yellow", 3)
    payload = build_state_payload(state)
    assert payload["build"]["stats"]["Defense"] == "3"
    assert payload["build"]["stats"]["Health"] == "1"

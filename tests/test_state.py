from assetlib.services import state as reducers
from assetlib.services.filtering import ALL
from assetlib.services.state import AppState


def _state():
    st = AppState()
    st.projects = [{"id": 1, "name": "Marketing"}, {"id": 2, "name": "Sales"}]
    st.folders = [
        {"id": 10, "project_id": 1, "parent_id": None, "name": "Logos"},
        {"id": 11, "project_id": 1, "parent_id": 10, "name": "2024"},
        {"id": 20, "project_id": 2, "parent_id": None, "name": "Decks"},
    ]
    return st


def test_open_project_resets_view_and_notifies():
    st = _state()
    seen = []
    st.subscribe(lambda s: seen.append(s.current_project_id))
    st.search_query = "old"
    st.selection.enter()
    st.selection.toggle(99)

    assert st.dispatch(reducers.open_project, 1) is True
    assert st.current_project_id == 1
    assert st.selected_folder == ALL and st.parent_folder is None
    assert st.search_query == ""
    assert not st.selection.active and len(st.selection) == 0
    assert seen == [1]


def test_open_unknown_project_is_a_noop():
    st = _state()
    assert st.dispatch(reducers.open_project, 42) is False
    assert st.current_project_id is None


def test_drill_in_and_back():
    st = _state()
    reducers.open_project(st, 1)
    reducers.select_folder(st, 10)
    reducers.drill_into(st, 11)
    assert (st.parent_folder, st.selected_folder) == (11, ALL)
    assert st.level_folders() == []
    reducers.go_back(st)
    assert st.parent_folder == 10
    reducers.go_back(st)
    assert st.parent_folder is None
    assert [f["name"] for f in st.level_folders()] == ["Logos"]


def test_search_is_normalized_and_cleared():
    st = _state()
    reducers.set_search(st, "  CaT ")
    assert st.search_query == "cat"
    reducers.clear_search(st)
    assert st.search_query == ""


def test_show_dashboard_leaves_project():
    st = _state()
    reducers.open_project(st, 2)
    reducers.show_dashboard(st)
    assert st.current_project is None


def test_replace_project_assets_keeps_other_projects():
    st = _state()
    st.assets = [{"id": 1, "project_id": 1}, {"id": 2, "project_id": 2}]
    st.replace_project_assets(1, [{"id": 3, "project_id": 1}])
    assert sorted(a["id"] for a in st.assets) == [2, 3]
    assert st.asset_counts[1] == 1


def test_failing_listener_does_not_break_dispatch():
    st = _state()
    calls = []

    def broken(_s):
        raise RuntimeError("boom")

    st.subscribe(broken)
    unsubscribe = st.subscribe(lambda s: calls.append(1))
    st.dispatch(reducers.set_search, "x")
    unsubscribe()
    st.dispatch(reducers.set_search, "y")
    assert calls == [1]

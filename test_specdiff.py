"""Tests for SpecDiff comparison engine."""

import pytest
from specdiff import (
    SpecDiffEngine,
    EngineConfig,
    AtomicChange,
    ChangeClassifier,
    ChangeDetector,
    ChangeKind,
    ChangeNavigator,
    LineDiffPart,
    LineStatus,
    SectionIndexer,
    Segment,
    Side,
    UnifiedPresenter,
    SplitPresenter,
    ChangelogPresenter,
    build_index,
    diff_lines,
    flatten,
    reconstruct,
    highlight,
    count_matches,
    next_change,
    previous_change,
    toggle,
    visible_lines,
    format_change,
)
from specdiff.classifier import parse_changes
from specdiff.differ import serialize_document, diff_stats
from specdiff.highlighter import matching_line_indices
from specdiff.schema import SchemaResolver
from specdiff.sections import hidden_indices
from specdiff.exceptions import ValidationError
from specdiff.utils import nearest_version, latest_before, split_lines


def _lcs_length(a, b):
    table = [[0] * (len(b) + 1) for _ in range(len(a) + 1)]
    for i in range(len(a) - 1, -1, -1):
        for j in range(len(b) - 1, -1, -1):
            if a[i] == b[j]:
                table[i][j] = table[i + 1][j + 1] + 1
            else:
                table[i][j] = max(table[i + 1][j], table[i][j + 1])
    return table[0][0]


def _change(kind, path, method=None, field=None):
    return AtomicChange(kind.value, path, method, field)


PREVIOUS = {"openapi": "3.0.0", "paths": {"/a": {"get": {}}}}
CURRENT = {"openapi": "3.0.0", "paths": {"/a": {"get": {}}, "/b": {"get": {}}}}


class TestChangeClassifier:
    """Test breaking/non-breaking classification."""

    def setup_method(self):
        self.classifier = ChangeClassifier()

    def test_empty_change_list(self):
        """Test that no changes means not breaking."""
        result = self.classifier.classify([])
        assert result.is_breaking is False
        assert result.changes == ()
        assert result.breaking_changes == ()
        assert result.non_breaking_changes == ()

    def test_breaking_kinds(self):
        """Test every breaking kind is labelled breaking."""
        for kind in (
            ChangeKind.ENDPOINT_REMOVED,
            ChangeKind.METHOD_REMOVED,
            ChangeKind.REQUIRED_REQUEST_FIELD_ADDED,
            ChangeKind.REQUIRED_RESPONSE_FIELD_REMOVED,
        ):
            result = self.classifier.classify([_change(kind, "/x", "GET", "f")])
            assert result.is_breaking is True, kind

    def test_non_breaking_kinds(self):
        """Test additive and relaxing kinds are not breaking."""
        changes = [
            _change(ChangeKind.ENDPOINT_ADDED, "/new"),
            _change(ChangeKind.METHOD_ADDED, "/x", "POST"),
            _change(ChangeKind.REQUIRED_REQUEST_FIELD_REMOVED, "/x", "POST", "a"),
            _change(ChangeKind.REQUIRED_RESPONSE_FIELD_ADDED, "/x", "GET", "b"),
        ]
        result = self.classifier.classify(changes)
        assert result.is_breaking is False
        assert result.non_breaking_changes == tuple(changes)

    def test_order_preserved_across_partitions(self):
        """Test input order is kept in the full list and both partitions."""
        changes = [
            _change(ChangeKind.ENDPOINT_ADDED, "/new"),
            _change(ChangeKind.ENDPOINT_REMOVED, "/old"),
            _change(ChangeKind.METHOD_ADDED, "/x", "PUT"),
            _change(ChangeKind.METHOD_REMOVED, "/x", "DELETE"),
        ]
        result = self.classifier.classify(changes)
        assert result.changes == tuple(changes)
        assert result.breaking_changes == (changes[1], changes[3])
        assert result.non_breaking_changes == (changes[0], changes[2])

    def test_reordering_only_reorders_output(self):
        """Test permuting the input keeps the verdict and permutes the lists."""
        changes = [
            _change(ChangeKind.ENDPOINT_ADDED, "/new"),
            _change(ChangeKind.REQUIRED_REQUEST_FIELD_ADDED, "/x", "POST", "id"),
            _change(ChangeKind.METHOD_ADDED, "/x", "PUT"),
            _change(ChangeKind.ENDPOINT_REMOVED, "/old"),
        ]
        forward = self.classifier.classify(changes)
        backward = self.classifier.classify(list(reversed(changes)))

        assert forward.is_breaking is True
        assert backward.is_breaking is True
        assert backward.changes == tuple(reversed(forward.changes))
        assert backward.breaking_changes == tuple(reversed(forward.breaking_changes))
        assert backward.non_breaking_changes == tuple(reversed(forward.non_breaking_changes))

        safe = changes[:1] + changes[2:3]
        assert self.classifier.classify(safe).is_breaking is False
        assert self.classifier.classify(safe[::-1]).is_breaking is False

    def test_unknown_kind_is_non_breaking(self):
        """Test unrecognised kinds do not make a version breaking."""
        result = self.classifier.classify([AtomicChange("schema_renamed", "/x")])
        assert result.is_breaking is False
        assert len(result.non_breaking_changes) == 1

    def test_classify_payload(self):
        """Test a backend payload with a changes list."""
        payload = {
            "breaking": True,
            "changes": [
                {"type": "endpoint_removed", "path": "/old"},
                {"type": "method_added", "path": "/x", "method": "POST"},
            ],
        }
        result = self.classifier.classify_payload(payload)
        assert result.is_breaking is True
        assert result.changes[0] == AtomicChange("endpoint_removed", "/old")
        assert result.changes[1].method == "POST"

    def test_legacy_payload(self):
        """Test the older endpoints_added/endpoints_removed shape."""
        payload = {"endpoints_added": ["/new"], "endpoints_removed": ["get /old", "/gone"]}
        changes = parse_changes(payload)
        assert changes == [
            AtomicChange("method_removed", "/old", "GET"),
            AtomicChange("endpoint_removed", "/gone"),
            AtomicChange("endpoint_added", "/new"),
        ]

    def test_invalid_payload(self):
        """Test payloads without structured changes are rejected."""
        with pytest.raises(ValidationError):
            self.classifier.classify_payload({"summary": "text only"})
        with pytest.raises(ValidationError):
            self.classifier.classify_payload(["not", "a", "dict"])

    def test_format_change(self):
        """Test one-line changelog descriptions."""
        assert format_change(_change(ChangeKind.ENDPOINT_ADDED, "/x")) == "+ Added endpoint: /x"
        assert format_change(_change(ChangeKind.METHOD_REMOVED, "/x", "GET")) == \
            "- Removed method: GET /x"
        assert format_change(_change(ChangeKind.REQUIRED_REQUEST_FIELD_ADDED, "/x", "POST", "name")) == \
            "+ Required request field: POST /x -> name"
        assert format_change(AtomicChange("custom", "/y")) == "custom: /y"

    def test_well_formed(self):
        """Test method/field presence rules."""
        assert _change(ChangeKind.ENDPOINT_ADDED, "/x").is_well_formed()
        assert _change(ChangeKind.METHOD_ADDED, "/x", "GET").is_well_formed()
        assert not _change(ChangeKind.METHOD_ADDED, "/x").is_well_formed()
        assert not _change(ChangeKind.ENDPOINT_ADDED, "/x", field="f").is_well_formed()


class TestLineDiff:
    """Test the line-level diff."""

    def test_identical_texts(self):
        """Test identical input yields a single unchanged part."""
        parts = diff_lines("a\nb", "a\nb")
        assert parts == [LineDiffPart(LineStatus.UNCHANGED, ("a", "b"))]

    def test_empty_texts(self):
        """Test two empty documents produce no parts."""
        assert diff_lines("", "") == []
        assert split_lines("") == []

    def test_all_added(self):
        """Test an empty previous text."""
        assert diff_lines("", "a\nb") == [LineDiffPart(LineStatus.ADDED, ("a", "b"))]

    def test_all_removed(self):
        """Test an empty current text."""
        assert diff_lines("a", "") == [LineDiffPart(LineStatus.REMOVED, ("a",))]

    def test_replacement_removed_before_added(self):
        """Test a changed hunk lists removed lines before added lines."""
        parts = diff_lines("a\nb\nc", "a\nx\nc")
        assert parts == [
            LineDiffPart(LineStatus.UNCHANGED, ("a",)),
            LineDiffPart(LineStatus.REMOVED, ("b",)),
            LineDiffPart(LineStatus.ADDED, ("x",)),
            LineDiffPart(LineStatus.UNCHANGED, ("c",)),
        ]

    def test_reconstruction(self):
        """Test both documents can be rebuilt from the parts."""
        cases = [
            ("a\nb\nc\na\nb\nb\na", "c\nb\na\nb\na\nc"),
            ("x", "y"),
            ("{\n}", "{\n  \"a\": 1\n}"),
            ("1\n2\n3\n4\n5", "0\n2\n3\n5\n6"),
        ]
        for old, new in cases:
            parts = diff_lines(old, new)
            assert "\n".join(reconstruct(parts, Side.PREVIOUS)) == old
            assert "\n".join(reconstruct(parts, Side.CURRENT)) == new

    def test_minimal_edit_script(self):
        """Test changed line count equals the shortest edit distance."""
        cases = [
            ("a\nb\nc\na\nb\nb\na", "c\nb\na\nb\na\nc"),
            ("a\nb\nc\nd", "b\nc\nd\ne"),
            ("p\nq\nr", "r\nq\np"),
        ]
        for old, new in cases:
            a, b = old.split("\n"), new.split("\n")
            stats = diff_stats(diff_lines(old, new))
            assert stats["added"] + stats["removed"] == len(a) + len(b) - 2 * _lcs_length(a, b)

    def test_parts_are_maximal_runs(self):
        """Test adjacent parts never share a status and no part is empty."""
        parts = diff_lines("a\nb\nc\na\nb\nb\na", "c\nb\na\nb\na\nc")
        for first, second in zip(parts, parts[1:]):
            assert first.status != second.status
        assert all(part.lines for part in parts)

    def test_flatten_numbers(self):
        """Test flattened lines carry absolute index and per-side numbers."""
        lines = flatten(diff_lines("a\nb\nc", "a\nx\nc"))
        assert [line.index for line in lines] == [0, 1, 2, 3]
        assert [(line.old_number, line.new_number) for line in lines] == [
            (1, 1), (2, None), (None, 2), (3, 3)
        ]

    def test_serialization_is_stable(self):
        """Test equal documents serialize identically with two-space indent."""
        assert serialize_document({"a": 1}) == '{\n  "a": 1\n}'
        assert serialize_document(PREVIOUS) == serialize_document(dict(PREVIOUS))


class TestSectionIndexer:
    """Test section boundaries and collapsing."""

    def setup_method(self):
        self.indexer = SectionIndexer()
        doc = {
            "openapi": "3.0.0",
            "info": {"title": "x"},
            "paths": {"/a": {"get": {}}, "/b": {}},
        }
        self.lines = serialize_document(doc).split("\n")
        self.sections = self.indexer.index_sections(self.lines)

    def test_boundaries(self):
        """Test top-level keys and path keys are found in order."""
        assert [(s.name, s.start_line_index) for s in self.sections] == [
            ("openapi", 1), ("info", 2), ("paths", 5), ("/a", 6), ("/b", 9),
        ]

    def test_boundary_name(self):
        """Test top-level keys only count at top-level indentation."""
        assert self.indexer.boundary_name('  "info": {') == "info"
        assert self.indexer.boundary_name('    "info": {') is None
        assert self.indexer.boundary_name('      "/pets/{id}": {') == "/pets/{id}"
        assert self.indexer.boundary_name('  "$ref": "#/components"') is None

    def test_collapse_hides_until_next_boundary(self):
        """Test a collapsed section hides lines up to the next boundary."""
        assert hidden_indices(self.sections, {"info"}, len(self.lines)) == {3, 4}
        assert hidden_indices(self.sections, {"/a"}, len(self.lines)) == {7, 8}
        assert hidden_indices(self.sections, {"/b"}, len(self.lines)) == {10, 11}

    def test_collapse_paths_only_hides_to_first_path(self):
        """Test collapsing paths does not hide the path entries themselves."""
        assert hidden_indices(self.sections, {"paths"}, len(self.lines)) == set()

    def test_toggle_involution(self):
        """Test toggling twice restores the set."""
        collapsed = frozenset({"info"})
        assert toggle(toggle(collapsed, "paths"), "paths") == collapsed
        assert toggle(collapsed, "info") == frozenset()

    def test_visible_lines(self):
        """Test boundary lines stay visible when collapsed."""
        lines = flatten(diff_lines("\n".join(self.lines), "\n".join(self.lines)))
        visible = visible_lines(lines, self.sections, {"info"})
        assert len(visible) == len(lines) - 2
        assert lines[2] in visible

    def test_sections_over_mixed_statuses(self):
        """Test boundaries are found in added and removed lines too."""
        old = serialize_document(PREVIOUS)
        new = serialize_document(CURRENT)
        lines = flatten(diff_lines(old, new))
        names = [s.name for s in self.indexer.index_sections(lines)]
        assert names == ["openapi", "paths", "/a", "/b"]


class TestChangeNavigator:
    """Test change navigation."""

    def setup_method(self):
        self.parts = [
            LineDiffPart(LineStatus.UNCHANGED, ("a", "b")),
            LineDiffPart(LineStatus.REMOVED, ("c",)),
            LineDiffPart(LineStatus.ADDED, ("d",)),
            LineDiffPart(LineStatus.UNCHANGED, ("e",)),
            LineDiffPart(LineStatus.ADDED, ("f",)),
        ]

    def test_build_index(self):
        """Test the index lists every added or removed line."""
        assert build_index(self.parts) == [2, 3, 5]

    def test_wrap_around(self):
        """Test next wraps to the start and previous wraps to the end."""
        index = build_index(self.parts)
        assert next_change(index, 2) == 0
        assert previous_change(index, 0) == 2
        assert next_change(index, 0) == 1

    def test_empty_index_is_noop(self):
        """Test navigation without changes does nothing."""
        assert next_change([], 0) == 0
        assert previous_change([], 0) == 0
        navigator = ChangeNavigator()
        assert navigator.next().current == 0
        assert navigator.current_line is None
        assert navigator.position_label() == "no changes"

    def test_full_cycle_from_every_start(self):
        """Test N moves return to the start and previous undoes next."""
        index = build_index(self.parts)
        for start in range(len(index)):
            pointer = start
            for _ in range(len(index)):
                pointer = next_change(index, pointer)
            assert pointer == start

            pointer = start
            for _ in range(len(index)):
                pointer = previous_change(index, pointer)
            assert pointer == start

            assert previous_change(index, next_change(index, start)) == start
            assert next_change(index, previous_change(index, start)) == start

    def test_navigator_moves(self):
        """Test the immutable navigator."""
        navigator = ChangeNavigator.from_parts(self.parts)
        assert navigator.current_line == 2
        assert navigator.next().current_line == 3
        assert navigator.previous().current_line == 5
        assert navigator.next().position_label() == "change 2 of 3"


class TestSearchHighlighter:
    """Test search highlighting."""

    def test_case_insensitive_segments(self):
        """Test matches keep the original casing."""
        segments = highlight("UserId and userid", "userid")
        assert segments == [
            Segment("UserId", True),
            Segment(" and ", False),
            Segment("userid", True),
        ]

    def test_path_line_segments(self):
        """Test a query inside a path key yields three segments."""
        assert highlight('  "/api/users/{id}": {', "users") == [
            Segment('  "/api/', False),
            Segment("users", True),
            Segment('/{id}": {', False),
        ]
        assert highlight("  /api/users/{id}", "users") == [
            Segment("  /api/", False),
            Segment("users", True),
            Segment("/{id}", False),
        ]

    def test_concatenation_equals_line(self):
        """Test segments always reassemble to the original line."""
        for line, query in [("abcabc", "b"), ("", "x"), ("no match", "zz"), ("aaa", "a")]:
            assert "".join(s.text for s in highlight(line, query)) == line

    def test_regex_characters_are_literal(self):
        """Test queries are matched literally."""
        assert highlight("axb a.b", "a.b") == [Segment("axb ", False), Segment("a.b", True)]
        assert count_matches(["(x)", "x"], "(") == 1
        assert highlight("[a]", "[") == [Segment("[", True), Segment("a]", False)]

    def test_empty_and_invalid_queries(self):
        """Test empty or unusable queries highlight nothing."""
        assert highlight("text", "") == [Segment("text", False)]
        assert highlight("text", None) == [Segment("text", False)]
        assert highlight("text", 5) == [Segment("text", False)]
        assert highlight("", "") == [Segment("", False)]
        assert count_matches(["text"], 5) == 0

    def test_count_and_lines(self):
        """Test occurrence counting and matching line positions."""
        assert count_matches(["aa", "a", "b"], "A") == 3
        assert matching_line_indices(["aa", "b", "xa"], "a") == [0, 2]


class TestSchemaResolver:
    """Test local $ref resolution."""

    def test_local_ref(self):
        """Test a local pointer is inlined."""
        doc = {"components": {"schemas": {"Pet": {"required": ["id"]}}}}
        resolver = SchemaResolver(doc)
        assert resolver.resolve_node({"$ref": "#/components/schemas/Pet"}) == {"required": ["id"]}

    def test_escaped_pointer(self):
        """Test ~1 and ~0 escapes in pointers."""
        doc = {"paths": {"/a~b": {"get": {"x": 1}}}}
        resolver = SchemaResolver(doc)
        assert resolver.resolve_node({"$ref": "#/paths/~1a~0b/get"}) == {"x": 1}

    def test_unresolvable_refs_left_in_place(self):
        """Test external, missing and circular refs are kept as-is."""
        doc = {"definitions": {"Node": {"properties": {"next": {"$ref": "#/definitions/Node"}}}}}
        resolver = SchemaResolver(doc)
        assert resolver.resolve_node({"$ref": "other.yaml#/X"}) == {"$ref": "other.yaml#/X"}
        assert resolver.resolve_node({"$ref": "#/missing"}) == {"$ref": "#/missing"}
        resolved = resolver.resolve_node({"$ref": "#/definitions/Node"})
        assert resolved["properties"]["next"] == {"$ref": "#/definitions/Node"}


class TestChangeDetector:
    """Test structural change detection."""

    def setup_method(self):
        self.detector = ChangeDetector()

    def test_detection_order(self):
        """Test changes come out in path, method and field order."""
        previous = {
            "paths": {
                "/pets": {
                    "get": {"responses": {"200": {"content": {"application/json": {
                        "schema": {"$ref": "#/components/schemas/Pet"}}}}}},
                    "post": {"requestBody": {"content": {"application/json": {
                        "schema": {"required": ["name"]}}}}},
                },
                "/old": {"get": {}},
            },
            "components": {"schemas": {"Pet": {"required": ["id", "name"]}}},
        }
        current = {
            "paths": {
                "/pets": {
                    "get": {"responses": {"200": {"content": {"application/json": {
                        "schema": {"required": ["id"]}}}}}},
                    "post": {
                        "requestBody": {"content": {"application/json": {
                            "schema": {"required": ["name", "tag"]}}}},
                        "parameters": [{"name": "limit", "in": "query", "required": True}],
                    },
                    "delete": {},
                },
                "/new": {"get": {}},
            },
        }
        changes = self.detector.detect(previous, current)
        assert changes == [
            AtomicChange("required_response_field_removed", "/pets", "GET", "name"),
            AtomicChange("required_request_field_added", "/pets", "POST", "tag"),
            AtomicChange("required_request_field_added", "/pets", "POST", "limit"),
            AtomicChange("method_added", "/pets", "DELETE"),
            AtomicChange("endpoint_removed", "/old"),
            AtomicChange("endpoint_added", "/new"),
        ]
        assert ChangeClassifier().classify(changes).is_breaking is True

    def test_method_removed(self):
        """Test a dropped operation is a breaking method change."""
        previous = {"paths": {"/x": {"get": {}, "put": {}}}}
        current = {"paths": {"/x": {"get": {}}}}
        assert self.detector.detect(previous, current) == [
            AtomicChange("method_removed", "/x", "PUT")
        ]

    def test_swagger_body_parameter(self):
        """Test Swagger 2 body parameters contribute required fields."""
        previous = {"swagger": "2.0", "paths": {"/x": {"post": {"parameters": [
            {"in": "body", "name": "body", "schema": {"required": ["a"]}}]}}}}
        current = {"swagger": "2.0", "paths": {"/x": {"post": {"parameters": [
            {"in": "body", "name": "body", "schema": {"required": []}}]}}}}
        assert self.detector.detect(previous, current) == [
            AtomicChange("required_request_field_removed", "/x", "POST", "a")
        ]

    def test_non_success_responses_ignored(self):
        """Test only 2xx responses are inspected."""
        previous = {"paths": {"/x": {"get": {"responses": {"404": {"schema": {"required": ["e"]}}}}}}}
        current = {"paths": {"/x": {"get": {"responses": {}}}}}
        assert self.detector.detect(previous, current) == []

    def test_identical_documents(self):
        """Test no changes for identical documents."""
        assert self.detector.detect(CURRENT, CURRENT) == []

    def test_non_object_document(self):
        """Test non-object documents are rejected."""
        with pytest.raises(ValidationError):
            self.detector.detect([], {})


class TestEngine:
    """Test the full comparison pipeline."""

    def setup_method(self):
        self.engine = SpecDiffEngine()

    def test_compare(self):
        """Test a report over two small documents."""
        result = self.engine.compare(PREVIOUS, CURRENT)
        assert result.is_identical is False
        assert [p.status for p in result.parts] == [
            LineStatus.UNCHANGED, LineStatus.ADDED, LineStatus.UNCHANGED
        ]
        assert result.change_index == [5, 6, 7]
        assert [(s.name, s.start_line_index) for s in result.sections] == [
            ("openapi", 1), ("paths", 2), ("/a", 3), ("/b", 6)
        ]
        assert result.summary.lines_added == 3
        assert result.summary.lines_removed == 0
        assert result.summary.lines_unchanged == 8
        assert result.classification.is_breaking is False
        assert result.classification.changes == (AtomicChange("endpoint_added", "/b"),)

    def test_identical(self):
        """Test identical documents have no changes."""
        result = self.engine.compare(CURRENT, CURRENT)
        assert result.is_identical is True
        assert result.change_index == []
        assert result.classification.changes == ()

    def test_to_dict(self):
        """Test the JSON report shape."""
        data = self.engine.compare(PREVIOUS, CURRENT).to_dict()
        assert data["identical"] is False
        assert data["summary"]["lines_added"] == 3
        assert data["parts"][1] == {
            "status": "added",
            "lines": ['    },', '    "/b": {', '      "get": {}'],
        }
        assert data["classification"]["breaking"] is False

    def test_missing_document(self):
        """Test a missing document yields a missing-artifact error."""
        result = self.engine.compare(None, CURRENT)
        assert result.success is False
        assert result.code == "MISSING_ARTIFACT"
        assert result.error["details"]["sides"] == ["previous"]
        assert result.error["details"]["versions"] == []

    def test_payload_size(self):
        """Test oversized documents are rejected."""
        engine = SpecDiffEngine(EngineConfig(max_payload_size_mb=0.00001))
        result = engine.compare({"x": "y" * 100}, {})
        assert result.code == "PAYLOAD_SIZE_ERROR"

    def test_computation_error(self):
        """Test unexpected failures are reported, not raised."""
        def boom(old, new):
            raise RuntimeError("boom")

        self.engine.differ.diff = boom
        result = self.engine.compare(PREVIOUS, CURRENT)
        assert result.code == "COMPUTATION_ERROR"
        assert result.error["details"]["type"] == "RuntimeError"

    def test_detection_disabled(self):
        """Test classification can be switched off."""
        engine = SpecDiffEngine(EngineConfig(detect_changes=False))
        assert engine.compare(PREVIOUS, CURRENT).classification is None

    def test_classify_payload_error(self):
        """Test bad backend payloads become error responses."""
        result = self.engine.classify_payload({"nothing": True})
        assert result.code == "VALIDATION_ERROR"


class TestPresenters:
    """Test unified, split and changelog projections."""

    def setup_method(self):
        self.report = SpecDiffEngine().compare(PREVIOUS, CURRENT)
        self.unified = UnifiedPresenter(
            self.report.parts,
            lines=self.report.lines,
            sections=self.report.sections,
            change_index=self.report.change_index,
        )
        self.split = SplitPresenter(self.report.parts)

    def test_unified_rows(self):
        """Test every line is shown with its marker."""
        view = self.unified.present()
        assert len(view.rows) == 11
        assert [row.marker for row in view.rows[4:9]] == [" ", "+", "+", "+", " "]
        assert view.position == "change 1 of 3"
        assert view.focused_line == 5
        assert view.rows[5].focused is True

    def test_unified_collapse(self):
        """Test collapsing a path hides the lines below its boundary."""
        view = self.unified.present(collapsed=frozenset({"/a"}))
        assert view.hidden_count == 2
        assert len(view.rows) == 9
        boundary = next(row for row in view.rows if row.section == "/a")
        assert boundary.collapsed is True
        assert boundary.hidden_below == 2

    def test_unified_search(self):
        """Test search counts cover every line."""
        view = self.unified.present(query="GET")
        assert view.match_count == 2
        matched = [row for row in view.rows if any(s.matched for s in row.segments)]
        assert len(matched) == 2
        assert view.match_lines == [4, 7]

    def test_search_positions_include_collapsed_lines(self):
        """Test match positions cover lines hidden by a collapsed section."""
        view = self.unified.present(query="get", collapsed=frozenset({"/a"}))
        assert view.match_lines == [4, 7]
        assert view.match_count == 2
        assert 4 not in [row.line.index for row in view.rows]

    def test_unified_render_text(self):
        """Test terminal rendering marks the focused change."""
        text = self.unified.render_text(self.unified.present(current=1))
        assert text.splitlines()[0] == "-- change 2 of 3 --"
        assert "=>" in text
        assert '"/b": {' in text

    def test_unified_context_folding(self):
        """Test long unchanged runs fold with a context limit."""
        presenter = UnifiedPresenter(diff_lines("a\nb\nc\nd\ne\nf", "a\nb\nc\nd\ne\nF"))
        text = presenter.render_text(presenter.present(), context_lines=1)
        assert "... 4 unchanged lines ..." in text

    def test_split_columns(self):
        """Test each column rebuilds its own document."""
        assert self.split.previous_lines == serialize_document(PREVIOUS).split("\n")
        assert self.split.current_lines == serialize_document(CURRENT).split("\n")
        assert self.split.removed == {}
        assert sorted(self.split.added) == [5, 6, 7]

    def test_split_present(self):
        """Test changed flags and search counts per column."""
        view = self.split.present("get")
        assert len(view.previous) == 8
        assert len(view.current) == 11
        assert [row.number for row in view.current if row.changed] == [6, 7, 8]
        assert not any(row.changed for row in view.previous)
        assert view.match_count == 3

    def test_split_removed_map(self):
        """Test removed lines are keyed by previous-column index."""
        split = SplitPresenter(diff_lines("a\nb\nc", "a\nx\ny\nc"))
        assert split.removed == {1: LineStatus.REMOVED}
        assert sorted(split.added) == [1, 2]

    def test_changelog(self):
        """Test the breaking badge and toggle label."""
        presenter = ChangelogPresenter()
        payload = {"changes": [
            {"type": "endpoint_removed", "path": "/old"},
            {"type": "endpoint_added", "path": "/new"},
        ]}
        collapsed = presenter.present(payload, version_label="v2")
        assert collapsed.badge == "Breaking Changes"
        assert collapsed.toggle_label == "Show 2 changes"
        assert collapsed.breaking == []

        expanded = presenter.present(payload, summary="Dropped /old", expanded=True)
        assert expanded.toggle_label == "Hide 2 changes"
        assert expanded.breaking == ["- Removed endpoint: /old"]
        assert expanded.non_breaking == ["+ Added endpoint: /new"]
        assert "Summary: Dropped /old" in presenter.render_text(expanded)

    def test_changelog_empty_and_raw(self):
        """Test nothing is shown without changes; unknown payloads show raw."""
        presenter = ChangelogPresenter()
        assert presenter.present(None) is None
        assert presenter.present({"changes": []}) is None
        raw = presenter.present({"note": "free text"})
        assert raw.raw == '{\n  "note": "free text"\n}'


class TestUtils:
    """Test version selection helpers."""

    def test_nearest_version(self):
        """Test nearest version with ties going to the lower one."""
        assert nearest_version(4, [1, 2, 5]) == 5
        assert nearest_version(3, [2, 4]) == 2
        assert nearest_version(3, []) is None

    def test_latest_before(self):
        """Test the greatest strictly earlier version."""
        assert latest_before(3, [1, 2, 3]) == 2
        assert latest_before(1, [1, 2]) is None

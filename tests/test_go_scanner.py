"""Tests for the tree-sitter Go struct scanner."""

from pathlib import Path
from textwrap import dedent

import pytest

from schema_architect.accumulator import SchemaAccumulator
from schema_architect.errors import SchemaSourceError
from schema_architect.go_scanner import (
    GoStructScanner,
    is_eligible,
    source_from_path,
)
from schema_architect.models import SOURCE_GO, UNKNOWN_TYPE


def _write(root: Path, rel: str, content: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dedent(content))
    return path


USER_DO = """\
    package do

    import (
        "github.com/gogf/gf/v2/frame/g"
        "example.com/app/internal/model/entity"
    )

    type User struct {
        g.Meta   `orm:"table:user, do:true"`
        Id       interface{}
        Passport string       `json:"passport" v:"required|length:6,30" dc:"Login name"`
        RoleIds  []int        `json:"roleIds,omitempty"`
        Profile  *entity.Profile
        Detail   *UserDetail  `orm:"with:uid=id" dc:"Detail row"`
        Scores   []*UserScore `orm:"with: uid = id"`
    }

    type UserDetail struct {
        Uid     interface{}
        Address string `json:"address"`
    }

    type Empty struct{}
    """


@pytest.fixture
def scanner():
    return GoStructScanner()


@pytest.fixture
def user_file(tmp_path):
    return _write(tmp_path, "internal/model/do/user.go", USER_DO)


class TestSourceMarkers:
    def test_do_marker(self):
        assert source_from_path("internal/model/do/user.go") == "go:do"

    def test_api_marker(self):
        assert source_from_path("api/user/v1/user.go") == "go:api"
        assert source_from_path("/srv/app/api/user.go") == "go:api"

    def test_no_marker(self):
        assert source_from_path("internal/service/user.go") == SOURCE_GO

    def test_eligibility(self):
        assert is_eligible("internal/model/do/user.go")
        assert not is_eligible("internal/model/do/README.md")
        assert not is_eligible("internal/logic/user.go")


class TestScanFile:
    def test_extracts_structs(self, scanner, user_file):
        tables = scanner.scan(user_file)
        assert tables is not None
        names = [t.struct_name for t in tables]
        assert names == ["User", "UserDetail"]

    def test_empty_struct_discarded(self, scanner, user_file):
        tables = scanner.scan(user_file)
        assert "Empty" not in {t.struct_name for t in tables}

    def test_columns(self, scanner, user_file):
        user = scanner.scan(user_file)[0]
        assert user.source == "go:do"
        assert user.normalized_name == "User"

        cols = {c.name: c for c in user.columns}
        assert set(cols) == {"Id", "Passport", "RoleIds", "Profile"}

        assert cols["Id"].type == UNKNOWN_TYPE
        assert cols["Id"].json_name == "Id"

        passport = cols["Passport"]
        assert passport.type == "string"
        assert passport.json_name == "passport"
        assert passport.validation == "required|length:6,30"
        assert passport.description == "Login name"
        assert passport.source == "go:do"

        assert cols["RoleIds"].type == "int"
        assert cols["RoleIds"].is_array is True
        assert cols["RoleIds"].json_name == "roleIds"

        assert cols["Profile"].type == "entity.Profile"
        assert cols["Profile"].is_array is False

    def test_relations(self, scanner, user_file):
        user = scanner.scan(user_file)[0]
        rels = {r.field_name: r for r in user.relations}
        assert set(rels) == {"Detail", "Scores"}

        detail = rels["Detail"]
        assert detail.target_struct == "UserDetail"
        assert detail.is_collection is False
        assert (detail.target_key, detail.source_key) == ("uid", "id")
        assert detail.description == "Detail row"

        scores = rels["Scores"]
        assert scores.target_struct == "UserScore"
        assert scores.is_collection is True
        assert (scores.target_key, scores.source_key) == ("uid", "id")

    def test_embedded_meta_is_not_a_column(self, scanner, user_file):
        user = scanner.scan(user_file)[0]
        assert "Meta" not in {c.name for c in user.columns}
        assert "g.Meta" not in {c.type for c in user.columns}

    def test_qualified_collection_relation(self, scanner, tmp_path):
        path = _write(
            tmp_path,
            "internal/model/do/order.go",
            """\
            package do

            type Order struct {
                Id    uint64
                Users []*entity.User `orm:"with:order_id"`
            }
            """,
        )
        order = scanner.scan(path)[0]
        rel = order.relations[0]
        assert rel.target_struct == "entity.User"
        assert rel.is_collection is True
        assert rel.target_key == "order_id"
        assert rel.source_key == "id"

    def test_multi_name_field(self, scanner, tmp_path):
        path = _write(
            tmp_path,
            "internal/model/do/point.go",
            """\
            package do

            type Point struct {
                X, Y float64 `json:"-"`
            }
            """,
        )
        point = scanner.scan(path)[0]
        assert [c.name for c in point.columns] == ["X", "Y"]
        assert all(c.type == "float64" for c in point.columns)
        # "-" means no wire name, so the field name is used
        assert [c.json_name for c in point.columns] == ["X", "Y"]

    def test_interpreted_tag_with_hex_escape(self, scanner, tmp_path):
        path = _write(
            tmp_path,
            "internal/model/do/code.go",
            r"""
            package do

            type Code struct {
                A string "json:\"a\" dc:\"\x41BC\""
            }
            """,
        )
        col = scanner.scan(path)[0].columns[0]
        assert (col.name, col.json_name, col.description) == ("A", "a", "ABC")

    def test_grouped_and_function_local_types(self, scanner, tmp_path):
        path = _write(
            tmp_path,
            "internal/model/do/group.go",
            """\
            package do

            type (
                Tag struct {
                    Name string
                }
                Label struct {
                    Text string
                }
            )

            func build() {
                type Local struct {
                    Value int
                }
            }
            """,
        )
        names = [t.struct_name for t in scanner.scan(path)]
        assert names == ["Tag", "Label", "Local"]

    def test_non_struct_types_ignored(self, scanner, tmp_path):
        path = _write(
            tmp_path,
            "internal/model/do/alias.go",
            """\
            package do

            type ID int64

            type Handler func() error

            type Reader interface {
                Read() error
            }
            """,
        )
        assert scanner.scan(path) == []

    def test_generic_field_type(self, scanner, tmp_path):
        path = _write(
            tmp_path,
            "internal/api/page.go",
            """\
            package api

            type PageRes struct {
                Items []Page[User] `json:"items"`
                Map   map[string]int
            }
            """,
        )
        page = scanner.scan(path)[0]
        cols = {c.name: c for c in page.columns}
        assert cols["Items"].type == "Page"
        assert cols["Items"].is_array is True
        assert cols["Map"].type == UNKNOWN_TYPE

    def test_unparseable_file_returns_none(self, scanner, tmp_path):
        path = _write(
            tmp_path,
            "internal/model/do/broken.go",
            """\
            package do

            type Broken struct {
                Name string
            """,
        )
        assert scanner.scan(path) is None

    def test_missing_file_returns_none(self, scanner, tmp_path):
        assert scanner.scan(tmp_path / "internal/model/do/nope.go") is None


class TestScanDirectory:
    def test_skips_broken_file_and_keeps_going(self, scanner, tmp_path):
        _write(tmp_path, "internal/model/do/user.go", USER_DO)
        _write(
            tmp_path,
            "internal/model/do/broken.go",
            "package do\n\ntype Broken struct {\n",
        )
        acc = SchemaAccumulator()
        stats = scanner.scan_directory(tmp_path / "internal", acc)

        assert stats.files_scanned == 1
        assert stats.files_skipped == 1
        assert stats.skipped_paths[0].endswith("broken.go")
        assert list(acc.tables) == ["User", "UserDetail"]
        assert stats.tables == 2

    def test_ignores_files_without_marker(self, scanner, tmp_path):
        _write(tmp_path, "internal/model/do/user.go", USER_DO)
        _write(
            tmp_path,
            "internal/logic/user.go",
            "package logic\n\ntype Service struct {\n\tName string\n}\n",
        )
        acc = SchemaAccumulator()
        scanner.scan_directory(tmp_path / "internal", acc)
        assert "Service" not in acc.tables

    def test_excluded_directories(self, scanner, tmp_path):
        _write(
            tmp_path,
            "internal/model/do/vendor/x.go",
            "package x\n\ntype Vendored struct {\n\tName string\n}\n",
        )
        acc = SchemaAccumulator()
        stats = scanner.scan_directory(tmp_path / "internal", acc)
        assert len(acc) == 0
        assert stats.files_scanned == 0

    def test_duplicate_names_are_disambiguated(self, scanner, tmp_path):
        _write(
            tmp_path,
            "internal/api/user/v1/user.go",
            """\
            package v1

            type User struct {
                Nickname string `json:"nickname"`
            }
            """,
        )
        _write(tmp_path, "internal/model/do/user.go", USER_DO)

        acc = SchemaAccumulator()
        scanner.scan_directory(tmp_path / "internal", acc)

        # api sorts before model, so the api struct claims the plain key
        assert acc.tables["User"].source == "go:api"
        assert acc.tables["User__2"].source == "go:do"
        assert acc.tables["User__2"].struct_name == "User"

    def test_missing_root_raises(self, scanner, tmp_path):
        with pytest.raises(SchemaSourceError) as exc_info:
            scanner.scan_directory(tmp_path / "nope", SchemaAccumulator())
        assert exc_info.value.path == str(tmp_path / "nope")

    def test_file_root_raises(self, scanner, tmp_path):
        path = _write(tmp_path, "internal/model/do/user.go", USER_DO)
        with pytest.raises(SchemaSourceError):
            scanner.scan_directory(path, SchemaAccumulator())

    def test_walk_order_is_deterministic(self, scanner, tmp_path):
        for name in ("zeta", "alpha", "mid"):
            _write(
                tmp_path,
                f"internal/model/do/{name}.go",
                f"package do\n\ntype {name.title()} struct {{\n"
                "\tName string\n}\n",
            )
        acc = SchemaAccumulator()
        scanner.scan_directory(tmp_path / "internal", acc)
        assert list(acc.tables) == ["Alpha", "Mid", "Zeta"]

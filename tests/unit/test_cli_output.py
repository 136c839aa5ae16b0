"""Tests for svcmap.cli.output formatting helpers."""

from __future__ import annotations

from fractions import Fraction

from svcmap.cli.output import format_ratio, print_json, print_table, print_topology
from svcmap.topology.models import ApplicationNode, Call, ConjecturalNode, Topology


class TestFormatRatio:
    def test_whole_ratio_prints_as_integer(self) -> None:
        assert format_ratio(Fraction(500)) == "500"
        assert format_ratio(Fraction(0)) == "0"

    def test_fractional_ratio_rounds_to_two_places(self) -> None:
        assert format_ratio(Fraction(10, 3)) == "3.33"
        assert format_ratio(Fraction(100, 7)) == "14.29"


class TestPrintTable:
    def test_columns_sized_to_widest_cell(self, capsys) -> None:
        print_table(["ID", "Name"], [["1", "order-service"], ["22", "db"]])
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "+----+---------------+"
        assert lines[1] == "| ID | Name          |"
        assert lines[3] == "| 1  | order-service |"
        assert lines[4] == "| 22 | db            |"
        assert lines[-1] == lines[0]

    def test_short_rows_padded(self, capsys) -> None:
        print_table(["A", "B", "C"], [["x"]])
        lines = capsys.readouterr().out.splitlines()
        assert lines[3] == "| x |   |   |"

    def test_extra_cells_dropped(self, capsys) -> None:
        print_table(["A"], [["x", "overflow"]])
        out = capsys.readouterr().out
        assert "overflow" not in out
        assert "| x |" in out

    def test_no_headers_prints_nothing(self, capsys) -> None:
        print_table([], [["x"]])
        assert capsys.readouterr().out == ""


class TestPrintJson:
    def test_fraction_serialized_as_string(self, capsys) -> None:
        print_json({"avg": Fraction(10, 3)})
        assert '"avg": "10/3"' in capsys.readouterr().out


class TestPrintTopology:
    def test_metrics_only_on_application_rows(self, capsys) -> None:
        topology = Topology(
            nodes=[
                ApplicationNode(id=2, name="order-service", type="Tomcat",
                                avg_response_time=Fraction(10, 3)),
                ConjecturalNode(id=4, name="10.0.0.5:3306", type="MySQL"),
            ],
            calls=[
                Call(source=2, source_name="order-service", target=4,
                     target_name="10.0.0.5:3306", call_type="Mysql",
                     avg_response_time=Fraction(25)),
            ],
        )
        print_topology(topology)
        out = capsys.readouterr().out
        assert "3.33" in out
        assert "| 25 " in out
        conjectural = next(line for line in out.splitlines() if "10.0.0.5:3306 |" in line)
        assert "conjectural" in conjectural
        assert "yes" not in conjectural and "no " not in conjectural

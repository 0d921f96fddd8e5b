"""
Unit tests for hop synthesis across hidden node types
"""

from plantscope.hops import HopLink, compute_hops, hop_description, is_hop_link
from plantscope.topology.models import Link
from plantscope.topology.types import NodeType
from plantscope.visibility import filter_by_type


def _visible(topology, hidden_types):
    return filter_by_type(topology.all_node_ids(), topology, hidden_types)


class TestComputeHops:
    """Test hop discovery"""

    def test_hidden_ups(self, electrical):
        """Test Switch Gear connects to the PDU through a hidden UPS"""
        hidden = {NodeType.UPS}
        hops = compute_hops(electrical, _visible(electrical, hidden), hidden)

        by_pair = {(h.source, h.target): h for h in hops}
        assert set(by_pair) == {("B", "F"), ("C", "F")}
        assert by_pair[("B", "F")].via_nodes == ["D"]
        assert by_pair[("B", "F")].description == "via UPS D"
        assert by_pair[("C", "F")].via_nodes == ["E"]
        assert by_pair[("B", "F")].id == "hop-B-F"
        assert not electrical.has_link("B", "F")

    def test_no_hidden_types(self, electrical):
        assert compute_hops(electrical, _visible(electrical, set()), set()) == []

    def test_stops_at_visible_node(self, build_topology):
        """Test a hop never skips over another visible node"""
        topology = build_topology(
            {"a": NodeType.ATS, "u1": NodeType.UPS, "p": NodeType.PDU, "u2": NodeType.UPS, "s": NodeType.SERVER},
            [("a", "u1"), ("u1", "p"), ("p", "u2"), ("u2", "s")],
        )
        hidden = {NodeType.UPS}
        pairs = {(h.source, h.target) for h in compute_hops(topology, _visible(topology, hidden), hidden)}

        assert pairs == {("a", "p"), ("p", "s")}

    def test_existing_direct_link_suppresses_hop(self, build_topology):
        topology = build_topology(
            {"a": NodeType.ATS, "u": NodeType.UPS, "p": NodeType.PDU},
            [("a", "u"), ("u", "p"), ("a", "p")],
        )
        hidden = {NodeType.UPS}
        assert compute_hops(topology, _visible(topology, hidden), hidden) == []

    def test_multi_hop_path(self, build_topology):
        topology = build_topology(
            {
                "es": NodeType.ES,
                "ats": NodeType.ATS,
                "sg": NodeType.SWITCH_GEAR,
                "ups": NodeType.UPS,
                "pdu": NodeType.PDU,
            },
            [("es", "ats"), ("ats", "sg"), ("sg", "ups"), ("ups", "pdu")],
        )
        hidden = {NodeType.ATS, NodeType.SWITCH_GEAR, NodeType.UPS}
        hops = compute_hops(topology, _visible(topology, hidden), hidden)

        assert len(hops) == 1
        assert hops[0].source == "es"
        assert hops[0].target == "pdu"
        assert hops[0].via_nodes == ["ats", "sg", "ups"]

    def test_first_discovery_wins(self, build_topology):
        """Test parallel hidden paths collapse to one hop"""
        topology = build_topology(
            {"a": NodeType.ATS, "u1": NodeType.UPS, "u2": NodeType.UPS, "p": NodeType.PDU},
            [("a", "u1"), ("a", "u2"), ("u1", "p"), ("u2", "p")],
        )
        hidden = {NodeType.UPS}
        hops = compute_hops(topology, _visible(topology, hidden), hidden)

        assert len(hops) == 1
        assert hops[0].via_nodes == ["u1"]

    def test_cycle_terminates(self, cyclic):
        """Test the search ends on a cyclic topology"""
        hidden = {NodeType.UPS}
        hops = compute_hops(cyclic, _visible(cyclic, hidden), hidden)

        assert [(h.source, h.target, h.via_nodes) for h in hops] == [("a", "p", ["u"])]

    def test_dangling_children_ignored(self, build_topology):
        topology = build_topology(
            {"a": NodeType.ATS, "u": NodeType.UPS},
            [("a", "u"), ("u", "ghost")],
        )
        hidden = {NodeType.UPS}
        assert compute_hops(topology, _visible(topology, hidden), hidden) == []


class TestHopDescription:
    """Test human readable hop labels"""

    def test_empty_path(self, electrical):
        assert hop_description([], electrical) == "Direct connection"

    def test_truncated(self, electrical):
        assert hop_description(["A", "B", "C", "D", "E"], electrical) == "via A, B, C +2 more"

    def test_custom_limit(self, electrical):
        assert hop_description(["A", "B", "C"], electrical, max_names=1) == "via A +2 more"

    def test_unknown_ids_shown_raw(self, electrical):
        assert hop_description(["ghost"], electrical) == "via ghost"


class TestIsHopLink:

    def test_is_hop_link(self):
        plain = Link(id="a->b", source="a", target="b")
        hop = HopLink(id="hop-a-b", source="a", target="b", via_nodes=["x"])

        assert not is_hop_link(plain)
        assert is_hop_link(hop)
        assert hop.is_hop

"""Tests for tooltip content and the interaction overlay."""

from flowmap.controller.overlay import location_content, transfer_content


class TestTooltipContent:

    def test_transfer(self, make_record, t0):
        record = make_record("T", t0, t0 + 2000, size=2048)
        content = transfer_content(record)
        assert content.header == "Transfer"
        assert [label for label, _ in content.rows] == [
            "DateTime Start", "DateTime End", "Duration", "Size", "Avg. Speed"
        ]
        assert content.value("DateTime Start") == "Tue, Jan 03, 2017, 14:00:00 UTC"
        assert content.value("Duration") == "0:00:02"
        assert content.value("Size") == "2 KiB"
        assert content.value("Avg. Speed") == "1 KiB / s"

    def test_location(self, record_a):
        content = location_content(record_a.dst_geo)
        assert content.header == "192.168.1.20"
        assert content.rows == (
            ("Hostname", "dst.example.org"),
            ("Organization", "Destination Org"),
            ("Region", "Destination Region"),
        )
        assert content.value("Missing") is None


class TestInteractionOverlay:

    def test_show_and_hide(self, overlay, record_a):
        emitted = []
        overlay.content_changed.connect(lambda content, pos: emitted.append((content, pos)))

        overlay.show_transfer_info(record_a, (10.0, 20.0))
        assert overlay.current.header == "Transfer"
        assert overlay.position == (10.0, 20.0)

        overlay.show_location_info(record_a.src_geo)
        assert overlay.current.header == "10.0.0.1"

        overlay.hide()
        assert overlay.current is None
        assert emitted[-1] == (None, None)
        assert len(emitted) == 3

    def test_hide_is_idempotent(self, overlay):
        emitted = []
        overlay.content_changed.connect(lambda content, pos: emitted.append(content))
        overlay.hide()
        overlay.hide()
        assert emitted == []

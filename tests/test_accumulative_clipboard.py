import pytest

from extended_copy.exceptions import EmptyTextError, TextTooLargeError, TooManyItemsError
from extended_copy.models import ClipboardState
from extended_copy.services import AccumulativeClipboard


def test_joins_items_in_capture_order(buffer):
    assert buffer.add_item("a") == 1
    assert buffer.add_item("b") == 2

    assert buffer.get_all_content() == "a\nb"
    assert buffer.get_all_content() == "a\nb"
    assert buffer.state == ClipboardState.accumulating(2)
    assert [item.text for item in buffer.items] == ["a", "b"]


def test_custom_separator():
    clip = AccumulativeClipboard(separator=" | ")
    for text in ("one", "two", "three"):
        clip.add_item(text)
    assert clip.get_all_content() == "one | two | three"
    assert clip.total_size == len("one | two | three")


def test_empty_text_is_rejected(buffer):
    with pytest.raises(EmptyTextError):
        buffer.add_item("")
    assert buffer.count == 0
    assert buffer.state == ClipboardState.normal()


def test_item_size_cap_counts_utf8_bytes():
    clip = AccumulativeClipboard(max_item_bytes=4, max_total_bytes=100)
    clip.add_item("abcd")
    with pytest.raises(TextTooLargeError) as exc_info:
        clip.add_item("ééé")
    assert exc_info.value.size == 6
    assert exc_info.value.limit == 4
    assert clip.count == 1


def test_item_count_cap():
    clip = AccumulativeClipboard(max_items=2)
    clip.add_item("a")
    clip.add_item("b")
    with pytest.raises(TooManyItemsError):
        clip.add_item("c")
    assert clip.get_all_content() == "a\nb"


def test_eviction_drops_oldest_half_and_keeps_new_item():
    evicted = []
    clip = AccumulativeClipboard(separator="", max_total_bytes=10, max_item_bytes=10, on_evict=evicted.extend)
    for text in ("aa", "bb", "cc", "dd", "ee"):
        clip.add_item(text)
    assert clip.total_size == 10
    assert evicted == []

    clip.add_item("ff")

    assert [item.text for item in evicted] == ["aa", "bb", "cc"]
    assert clip.get_all_content() == "ddeeff"
    assert clip.state == ClipboardState.accumulating(3)
    assert clip.total_size <= clip.max_total_bytes


def test_eviction_counts_separators():
    clip = AccumulativeClipboard(separator="--", max_total_bytes=6, max_item_bytes=6)
    clip.add_item("ab")
    clip.add_item("cd")
    assert clip.total_size == 6

    clip.add_item("e")

    assert clip.get_all_content() == "cd--e"


def test_large_item_evicts_everything_else():
    clip = AccumulativeClipboard(separator="\n", max_total_bytes=8, max_item_bytes=8)
    clip.add_item("abc")
    clip.add_item("def")
    clip.add_item("12345678")
    assert clip.get_all_content() == "12345678"
    assert clip.count == 1


def test_reset_is_idempotent(buffer):
    buffer.add_item("a")
    buffer.add_item("b")
    buffer.add_item("c")

    assert buffer.reset() is True
    assert buffer.state == ClipboardState.normal()
    assert buffer.items == []
    assert buffer.get_all_content() == ""
    assert buffer.total_size == 0

    assert buffer.reset() is False
    assert buffer.state == ClipboardState.normal()


def test_observers_see_every_mutation(buffer):
    seen = []
    unsubscribe = buffer.subscribe(seen.append)

    buffer.add_item("a")
    buffer.add_item("b")
    buffer.reset()
    buffer.reset()

    assert seen == [
        ClipboardState.accumulating(1),
        ClipboardState.accumulating(2),
        ClipboardState.normal(),
    ]

    unsubscribe()
    buffer.add_item("c")
    assert len(seen) == 3


def test_observer_state_matches_buffer_length(buffer):
    mismatches = []

    def check(state):
        if state.count != len(buffer.items):
            mismatches.append(state)

    buffer.subscribe(check)
    for text in "abcdef":
        buffer.add_item(text)
    buffer.reset()
    assert mismatches == []


def test_failing_observer_does_not_block_others(buffer):
    seen = []

    def broken(state):
        raise RuntimeError("boom")

    buffer.subscribe(broken)
    buffer.subscribe(seen.append)
    buffer.add_item("a")
    assert seen == [ClipboardState.accumulating(1)]

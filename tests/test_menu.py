from allerguard import ScanItem, items_from_text


def test_blank_line_blocks_become_named_items():
    text = "Pad Thai\nrice noodles, peanuts, egg\n\n  \nGreen Curry\ncoconut milk, basil\n"
    items = items_from_text(text, ocr_quality=0.8)
    assert [item.name for item in items] == ["Pad Thai", "Green Curry"]
    assert items[0].text == "Pad Thai\nrice noodles, peanuts, egg"
    assert all(item.ocr_quality == 0.8 for item in items)


def test_text_without_blank_lines_splits_per_line():
    items = items_from_text("Caesar salad\r\nTomato soup\n")
    assert items == [
        ScanItem(name="Caesar salad", text="Caesar salad"),
        ScanItem(name="Tomato soup", text="Tomato soup"),
    ]


def test_empty_text_has_no_items():
    assert items_from_text("") == []
    assert items_from_text("   \n ") == []

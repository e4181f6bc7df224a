"""Flexbox → auto-layout inference."""

from dataclasses import dataclass
from typing import Optional

from .design import FrameNode
from .snapshot import StyleRecord

FLEX_DISPLAYS = {"flex", "inline-flex"}

PRIMARY_ALIGN = {
    "center": "CENTER",
    "flex-end": "MAX",
    "end": "MAX",
    "space-between": "SPACE_BETWEEN",
}

COUNTER_ALIGN = {
    "center": "CENTER",
    "flex-end": "MAX",
    "end": "MAX",
    "baseline": "BASELINE",
}


@dataclass
class AutoLayout:
    layout_mode: str
    primary_axis_align_items: str = "MIN"
    counter_axis_align_items: str = "MIN"
    layout_wrap: str = "NO_WRAP"
    item_spacing: float = 0.0
    counter_axis_spacing: float = 0.0
    padding_top: float = 0.0
    padding_right: float = 0.0
    padding_bottom: float = 0.0
    padding_left: float = 0.0


def infer_auto_layout(style: StyleRecord) -> Optional[AutoLayout]:
    """Auto-layout parameters for a flex container, ``None`` otherwise.

    space-around/space-evenly fall back to MIN and wrap-reverse is treated
    as plain wrap.
    """
    if style.display not in FLEX_DISPLAYS:
        return None

    direction = style.flex_direction or "row"
    layout = AutoLayout(
        layout_mode="VERTICAL" if direction in {"column", "column-reverse"} else "HORIZONTAL",
        primary_axis_align_items=PRIMARY_ALIGN.get(style.justify_content or "", "MIN"),
        counter_axis_align_items=COUNTER_ALIGN.get(style.align_items or "", "MIN"),
    )

    if style.flex_wrap in {"wrap", "wrap-reverse"}:
        layout.layout_wrap = "WRAP"

    # column-gap runs along a row, row-gap along a column
    if layout.layout_mode == "HORIZONTAL":
        main_gap, cross_gap = style.column_gap, style.row_gap
    else:
        main_gap, cross_gap = style.row_gap, style.column_gap
    main_gap = main_gap or style.gap
    cross_gap = cross_gap or style.gap

    if main_gap is not None and main_gap.px() > 0:
        layout.item_spacing = main_gap.px()

    if layout.layout_wrap == "WRAP" and cross_gap is not None and cross_gap.px() > 0:
        layout.counter_axis_spacing = cross_gap.px()

    layout.padding_top = style.px("padding_top")
    layout.padding_right = style.px("padding_right")
    layout.padding_bottom = style.px("padding_bottom")
    layout.padding_left = style.px("padding_left")
    return layout


def apply_auto_layout(frame: FrameNode, layout: AutoLayout) -> None:
    frame.layout_mode = layout.layout_mode
    frame.primary_axis_align_items = layout.primary_axis_align_items
    frame.counter_axis_align_items = layout.counter_axis_align_items
    frame.layout_wrap = layout.layout_wrap
    frame.item_spacing = layout.item_spacing
    frame.counter_axis_spacing = layout.counter_axis_spacing
    frame.padding_top = layout.padding_top
    frame.padding_right = layout.padding_right
    frame.padding_bottom = layout.padding_bottom
    frame.padding_left = layout.padding_left

    # no hug/fill inference: container and children stay fixed
    frame.layout_sizing_horizontal = "FIXED"
    frame.layout_sizing_vertical = "FIXED"
    for child in frame.children:
        child.layout_sizing_horizontal = "FIXED"
        child.layout_sizing_vertical = "FIXED"


def try_apply_auto_layout(frame: FrameNode, style: StyleRecord) -> Optional[AutoLayout]:
    layout = infer_auto_layout(style)
    if layout is not None:
        apply_auto_layout(frame, layout)
    return layout

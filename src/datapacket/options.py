from dataclasses import dataclass

from libb import ConfigOptions

__all__ = [
    'PacketOptions',
    'INVALID_INPUT_POLICIES',
    'default_options',
]

INVALID_INPUT_POLICIES = ('coerce', 'reject')


@dataclass
class PacketOptions(ConfigOptions):
    """Options

    Widget input handling:
    - invalid_input: `coerce` turns unparseable input into a zero-like,
      clamped or truncated value; `reject` raises InvalidInputError
    - allow_negative_count: let `_CNT` steppers go below zero (default: False)
    - percent_min, percent_max: inclusive percentage bounds (default: 0, 100)

    Display:
    - date_display_format: strftime pattern for grid dates (default: locale `%x`)
    - yes_label, no_label: captions for the Y/N choice
    - true_glyph, false_glyph: grid text for booleans
    - null_display: grid text for NULL cells
    - textarea_rows: visible rows of multi-line text widgets

    Introspection:
    - sniff_types: infer storage types from the first row when the driver
      reports none (SQLite)
    """
    invalid_input: str = 'coerce'
    allow_negative_count: bool = False
    percent_min: float = 0
    percent_max: float = 100
    date_display_format: str = '%x'
    yes_label: str = 'Yes'
    no_label: str = 'No'
    true_glyph: str = '✓'
    false_glyph: str = '✗'
    null_display: str = '-'
    textarea_rows: int = 3
    sniff_types: bool = True

    def __post_init__(self):
        if self.invalid_input not in INVALID_INPUT_POLICIES:
            raise ValueError(f'invalid_input must be one of: {INVALID_INPUT_POLICIES}')
        if self.percent_min > self.percent_max:
            raise ValueError('percent_min must not exceed percent_max')
        if self.textarea_rows < 1:
            raise ValueError('textarea_rows must be at least 1')


def default_options() -> PacketOptions:
    """Fresh options with every default applied.
    """
    return PacketOptions()

"""
Exceptions raised while locating fixed sections of a PTO worksheet.
"""


class SheetLayoutError(ValueError):
    """A fixed section of the sheet could not be found where the layout expects it."""

    def __init__(self, sheet_name: str, section: str, detail: str):
        self.sheet_name = sheet_name
        self.section = section
        self.detail = detail
        super().__init__(f'{section} not found on sheet "{sheet_name}": {detail}')

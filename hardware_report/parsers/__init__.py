# hardware_report/parsers/__init__.py
"""
Pure parsers: raw probe output in, partial records out.

Every parse_* function takes the content of one RawOutput and returns a list
of partial records, raising ParseFailedError on malformed input.
"""

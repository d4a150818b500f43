from typing import Dict, List, Tuple


Row = Dict[str, str]


def detect_delimiter(first_line: str) -> str:
    return "\t" if "\t" in first_line else ","


def parse_table(text: str) -> Tuple[List[str], List[Row]]:
    """Parse comma- or tab-delimited text into ``(headers, rows)``.

    Blank lines are dropped, the first remaining line is the header and every
    later line is zipped against it by position. Values stay text; missing
    trailing fields become ``""``. Quoting is not interpreted.
    """
    lines = [line for line in text.split("\n") if line.strip()]
    if not lines:
        return [], []

    delimiter = detect_delimiter(lines[0])
    headers = [h.strip() for h in lines[0].split(delimiter)]
    if len(lines) < 2:
        return headers, []

    rows: List[Row] = []
    for line in lines[1:]:
        values = line.split(delimiter)
        row: Row = {}
        for idx, header in enumerate(headers):
            row[header] = values[idx].strip() if idx < len(values) else ""
        rows.append(row)
    return headers, rows

# patterns.py
import re


class Patterns:
    AIRPORT = re.compile(r"\b[A-Z]{3}\b")
    AIRPORT_PAREN = re.compile(r"\(([A-Z]{3})\)")
    ROUTE = re.compile(r"\b([A-Z]{3})\s*(?:-|–|—|→|->|>|to)\s*([A-Z]{3})\b")
    # Colon required: a bare "1457" is a flight number, not a time
    TIME = re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)(?:\s*([AaPp])\.?\s*[Mm]\.?)?(?![\d:])")
    LD_JSON = re.compile(
        r"<script[^>]*type=[\"']application/ld\+json[\"'][^>]*>(.*?)</script>",
        re.IGNORECASE | re.DOTALL,
    )
    SCRIPT_STYLE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
    TAG = re.compile(r"<[^>]+>")
    WHITESPACE = re.compile(r"\s+")
    # "06:05 IST" is a clock zone, not Istanbul
    TIME_ZONE_SUFFIX = re.compile(
        r"(\d{1,2}:\d{2}(?:\s*[AaPp]\.?\s*[Mm]\.?)?)\s+"
        r"(?:IST|GMT|UTC|BST|CET|CEST|EST|EDT|CST|CDT|MST|MDT|PST|PDT|JST|KST|SGT|GST|AEST|AEDT|NZST)\b"
    )
    STATUS_WORDS = re.compile(
        r"\b(cancel+ed|delayed|boarding|departed|in[\s-]flight|en[\s-]?route|airborne|landed|arrived|on[\s-]time|scheduled)\b",
        re.IGNORECASE,
    )


patterns = Patterns()

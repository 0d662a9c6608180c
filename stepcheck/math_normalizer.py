import logging
import re

from .exceptions import LatexConversionError

logger = logging.getLogger(__name__)

# NBSP, unicode spaces, zero-width characters, word joiner, BOM
INVISIBLE_RE = re.compile(r"[\u00a0\u1680\u180e\u2000-\u200f\u2028-\u202f\u205f\u2060\ufeff]")
QUOTES_RE = re.compile(r"[\"\u2018\u2019\u201c\u201d]")
CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
MARKUP_RE = re.compile(r"[\\{}^_]")

UNICODE_SYMBOLS = {
    "×": "*",
    "·": "*",
    "⋅": "*",
    "∙": "*",
    "÷": "/",
    "−": "-",
    "–": "-",
    "π": "pi",
    "√": "sqrt",
    "⁰": "^0",
    "¹": "^1",
    "²": "^2",
    "³": "^3",
    "⁴": "^4",
    "⁵": "^5",
    "⁶": "^6",
    "⁷": "^7",
    "⁸": "^8",
    "⁹": "^9",
}

# \command -> linear replacement
LATEX_SYMBOLS = {
    "cdot": "*",
    "times": "*",
    "ast": "*",
    "div": "/",
    "pm": "+-",
    "le": "<=",
    "leq": "<=",
    "ge": ">=",
    "geq": ">=",
    "ne": "!=",
    "neq": "!=",
    "infty": "oo",
    "circ": "∘",
    "pi": "pi",
    "theta": "theta",
    "alpha": "alpha",
    "beta": "beta",
    "gamma": "gamma",
    "delta": "delta",
    "lambda": "lambda",
    "mu": "mu",
    "sigma": "sigma",
    "phi": "phi",
    "omega": "omega",
}

# Commands whose only job is layout
LATEX_IGNORED = {"left", "right", "displaystyle", "scriptstyle", "big", "bigl", "bigr"}
LATEX_TEXT = {"text", "textrm", "textbf", "operatorname", "mathrm", "mathbf", "mathit"}
LATEX_COLOR = {"textcolor", "color", "colorbox", "mathcolor"}
LATEX_SPACING = {",", ";", ":", "!", " ", "quad", "qquad"}
LATEX_FRACTIONS = {"frac", "dfrac", "tfrac", "cfrac"}
LATEX_FUNCTIONS = {"sin", "cos", "tan", "log", "ln", "exp"}
# Deepest nesting of groups, scripts and commands the reader descends into
MAX_MARKUP_DEPTH = 100


def has_markup(text: str) -> bool:
    return bool(MARKUP_RE.search(text))


class _LatexReader:
    """Recursive-descent reader over a LaTeX string."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.depth = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self) -> str:
        return self.source[self.pos] if not self.at_end() else ""

    def read_sequence(self, closing: str = "") -> str:
        out = []
        while not self.at_end():
            ch = self.peek()
            if closing and ch == closing:
                return "".join(out)
            if ch == "}":
                raise LatexConversionError(f"unbalanced '}}' at {self.pos}")
            out.append(self.read_atom())
        if closing:
            raise LatexConversionError(f"missing '{closing}'")
        return "".join(out)

    def read_group(self) -> str:
        """Read a braced group, or a single atom when no brace follows."""
        self.skip_spaces()
        if self.at_end():
            raise LatexConversionError("missing command argument")
        if self.peek() == "{":
            self.pos += 1
            content = self.read_sequence("}")
            self.pos += 1
            return content
        return self.read_atom()

    def read_optional(self) -> str:
        self.skip_spaces()
        if self.peek() != "[":
            return ""
        self.pos += 1
        out = []
        while self.peek() != "]":
            if self.at_end():
                raise LatexConversionError("missing ']'")
            out.append(self.read_atom())
        self.pos += 1
        return "".join(out)

    def skip_spaces(self) -> None:
        while self.peek() == " ":
            self.pos += 1

    def read_atom(self) -> str:
        self.depth += 1
        try:
            if self.depth > MAX_MARKUP_DEPTH:
                raise LatexConversionError("markup nested too deeply")
            return self._read_atom()
        finally:
            self.depth -= 1

    def _read_atom(self) -> str:
        ch = self.peek()
        if ch == "\\":
            return self.read_command()
        if ch == "{":
            self.pos += 1
            content = self.read_sequence("}")
            self.pos += 1
            return f"({content})"
        if ch in "^_":
            self.pos += 1
            arg = self.read_group()
            return f"{ch}({arg})" if len(arg) > 1 else f"{ch}{arg}"
        self.pos += 1
        return ch

    def read_command(self) -> str:
        self.pos += 1
        if self.at_end():
            raise LatexConversionError("dangling backslash")
        start = self.pos
        if self.peek().isalpha():
            while not self.at_end() and self.peek().isalpha():
                self.pos += 1
        else:
            self.pos += 1
        name = self.source[start:self.pos]

        if name in LATEX_FRACTIONS:
            numerator = self.read_group()
            denominator = self.read_group()
            return f"({numerator})/({denominator})"
        if name == "sqrt":
            index = self.read_optional()
            radicand = self.read_group()
            if index:
                return f"root({radicand},{index})"
            return f"sqrt({radicand})"
        if name in LATEX_COLOR:
            self.read_group()
            return self.read_group() if name != "color" else ""
        if name in LATEX_TEXT:
            return self.read_group()
        if name in LATEX_SPACING:
            return " "
        if name in LATEX_IGNORED:
            return ""
        if name in ("{", "}"):
            return "(" if name == "{" else ")"
        if name in LATEX_SYMBOLS:
            return LATEX_SYMBOLS[name]
        if name in LATEX_FUNCTIONS:
            return name
        if not name.isalpha():
            return name if name in "%&$#|" else ""
        return name


def latex_to_linear(latex: str) -> str:
    """Convert math markup into flat linear math.

    ``\\frac{a}{b}`` becomes ``(a)/(b)``, ``\\sqrt{x}`` becomes ``sqrt(x)``,
    ``\\cdot``/``\\times`` become ``*`` and ``\\div`` becomes ``/``.

    Raises:
        LatexConversionError: the markup is malformed.
    """
    reader = _LatexReader(latex)
    return reader.read_sequence()


def _regex_cleanup(text: str) -> str:
    """Best-effort cleanup for markup the converter rejected."""
    text = re.sub(r"\\[dt]?frac\{([^{}]*)\}\{([^{}]*)\}", r"(\1)/(\2)", text)
    text = re.sub(r"\\sqrt\{([^{}]*)\}", r"sqrt(\1)", text)
    text = re.sub(r"\\(cdot|times)", "*", text)
    text = re.sub(r"\\div", "/", text)
    text = re.sub(r"\\(left|right)", "", text)
    text = re.sub(r"\\([a-zA-Z]+)", r"\1", text)
    text = text.replace("\\", "")
    text = text.replace("{", "").replace("}", "")
    return text


def _replace_unicode(text: str) -> str:
    for symbol, replacement in UNICODE_SYMBOLS.items():
        text = text.replace(symbol, replacement)
    return text


def normalize(raw: str) -> str:
    """Canonicalize answer text into a comparable string.

    Never raises: malformed markup goes through a regex cleanup instead of the
    dedicated converter.
    """
    if not raw:
        return ""

    text = INVISIBLE_RE.sub("", raw)
    text = CONTROL_RE.sub("", text)
    text = QUOTES_RE.sub("", text)
    text = _replace_unicode(text)

    if has_markup(text):
        try:
            text = latex_to_linear(text)
        except LatexConversionError as e:
            logger.warning("Markup conversion failed for %r (%s), using regex cleanup", raw, e)
            text = _regex_cleanup(text)

    text = text.lower()
    text = re.sub(r"\s+", "", text)

    if not text and raw.strip():
        # Only markup survived; keep something comparable.
        text = re.sub(r"\s+", "", raw).lower()

    return text


def sanitize_text(value: str) -> str:
    """Whitespace- and case-insensitive form of the raw text."""
    return re.sub(r"\s+", "", value or "").lower()

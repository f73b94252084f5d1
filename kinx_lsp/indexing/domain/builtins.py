"""Built-in Kinx names used by completion."""

KEYWORDS: tuple[str, ...] = (
    "var",
    "const",
    "function",
    "native",
    "class",
    "module",
    "mixin",
    "using",
    "public",
    "private",
    "return",
    "yield",
    "if",
    "else",
    "for",
    "in",
    "while",
    "do",
    "switch",
    "case",
    "default",
    "when",
    "break",
    "continue",
    "try",
    "catch",
    "finally",
    "throw",
    "new",
    "this",
    "super",
    "import",
    "enum",
    "null",
    "true",
    "false",
    "_function",
    "_class",
    "_module",
)

BUILTIN_TYPE_NAMES: tuple[str, ...] = (
    "Integer",
    "Double",
    "String",
    "Binary",
    "Array",
    "Object",
    "Function",
    "Boolean",
    "Range",
    "Null",
)

# Members available on values of each built-in type.
PREDEFINED_MEMBERS: dict[str, tuple[str, ...]] = {
    "Integer": ("times", "upto", "downto", "toString", "toInt", "toDouble", "isInteger"),
    "Double": ("toString", "toInt", "toDouble", "isDouble"),
    "String": (
        "length",
        "find",
        "subString",
        "replace",
        "split",
        "trim",
        "trimLeft",
        "trimRight",
        "toUpper",
        "toLower",
        "toInt",
        "toDouble",
        "each",
        "format",
        "isString",
    ),
    "Binary": ("length", "toString", "each", "isBinary"),
    "Array": (
        "length",
        "push",
        "pop",
        "shift",
        "unshift",
        "map",
        "filter",
        "reduce",
        "each",
        "join",
        "sort",
        "reverse",
        "flatten",
        "keySet",
        "isArray",
    ),
    "Object": ("keySet", "clone", "each", "isObject"),
    "Function": ("call", "apply", "isFunction"),
    "Range": ("begin", "end", "each", "toArray", "isRange"),
}

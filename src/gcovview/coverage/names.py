"""Function name canonicalization.

Reduces a demangled C++ signature to a base name shared by all overloads
and template instantiations of the same function::

    "void ns::Foo<int>::bar(int, int)"  ->  "ns::Foo<...>::bar"
"""

TEMPLATE_PLACEHOLDER = "<...>"


def canonicalize_function_name(demangled_name: str) -> str:
    """Strip parameter lists, template arguments, return type and qualifiers.

    Single left-to-right scan:
    - characters inside parentheses are dropped; the output length where
      the outermost parenthesis region last closed marks the end of the
      parameter list
    - a template argument list closing at top level is replaced by
      ``<...>``; nested lists are dropped
    - the output is cut at the end of the parameter list and only the last
      space-separated token is kept (drops the return type)

    A signature without any parameter list is kept whole.

    A name ending in ``::operator`` lost its operator symbol to the
    parenthesis/bracket handling, which only happens for ``operator()``.
    """
    name: list[str] = []
    template_depth = 0
    parenthesis_depth = 0
    parameter_list_end: int | None = None
    for c in demangled_name:
        if c == "(":
            parenthesis_depth += 1
        elif c == ")":
            parenthesis_depth -= 1
            if parenthesis_depth == 0:
                parameter_list_end = len(name)
        elif c == "<":
            template_depth += 1
        elif c == ">":
            template_depth -= 1
            if parenthesis_depth == 0 and template_depth == 0:
                name.append(TEMPLATE_PLACEHOLDER)
        elif parenthesis_depth == 0 and template_depth == 0:
            name.append(c)

    if parameter_list_end is not None:
        name = name[:parameter_list_end]
    result = "".join(name)
    result = result.split(" ")[-1]
    if result.endswith("::operator"):
        result += "()"
    return result

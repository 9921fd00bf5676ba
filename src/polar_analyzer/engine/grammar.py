from __future__ import annotations

from functools import cache

from lark import Lark

POLAR_GRAMMAR = r"""
line: rule
    | query

query: "?=" term ";"
rule: NAME "(" [parameters] ")" ["if" term] ";"
parameters: parameter ("," parameter)* ","?
parameter: additive [":" specializer]

query_term: term

specializer: NAME                          -> tag_pattern
           | NAME "{" [fields] "}"         -> tag_fields_pattern
           | "{" [fields] "}"              -> dict_pattern
           | literal                       -> literal_pattern

?literal: number
        | string
        | boolean
        | list_lit
        | "-" number                       -> negate

?term: or_expr

?or_expr: and_expr ("or" and_expr)*
?and_expr: not_expr ("and" not_expr)*

?not_expr: "not" not_expr                  -> not_op
         | comparison

?comparison: additive
           | additive "=" additive          -> unify
           | additive "==" additive         -> eq
           | additive "!=" additive         -> neq
           | additive "<" additive          -> lt
           | additive "<=" additive         -> leq
           | additive ">" additive          -> gt
           | additive ">=" additive         -> geq
           | additive "in" additive         -> in_op
           | additive "matches" specializer -> matches_op

?additive: multiplicative
         | additive "+" multiplicative      -> add
         | additive "-" multiplicative      -> sub

?multiplicative: unary
               | multiplicative "*" unary   -> mul
               | multiplicative "/" unary   -> div
               | multiplicative "mod" unary -> mod
               | multiplicative "rem" unary -> rem

?unary: "-" unary                          -> negate
      | postfix

?postfix: primary
        | postfix "." NAME                  -> lookup
        | postfix "." NAME "(" [arguments] ")" -> method_call

?primary: number
        | string
        | boolean
        | NAME                              -> variable
        | NAME "(" [arguments] ")"          -> call
        | list_lit
        | dict_lit
        | "(" term ")"
        | "cut"                             -> cut
        | "forall" "(" term "," term ")"    -> forall
        | "print" "(" [arguments] ")"       -> print_call
        | "new" NAME "(" [arguments] ")"    -> new_call
        | "debug" "(" [arguments] ")"       -> debug
        | "debug"                           -> debug

number: INTEGER
      | FLOAT
string: STRING
boolean: "true"                            -> true_lit
       | "false"                           -> false_lit
list_lit: "[" [arguments] "]"
dict_lit: "{" [fields] "}"

arguments: term ("," term)*
fields: field ("," field)*
field: NAME ":" term

NAME: /[A-Za-z_][A-Za-z0-9_]*(::[A-Za-z_][A-Za-z0-9_]*)*/
FLOAT.2: /[0-9]+\.[0-9]+([eE][+-]?[0-9]+)?|[0-9]+[eE][+-]?[0-9]+/
INTEGER: /[0-9]+/
STRING: /"(?:[^"\\]|\\[\s\S])*"/
COMMENT: /#[^\n]*/
WHITESPACE: /\s+/

%ignore COMMENT
%ignore WHITESPACE
"""


@cache
def polar_parser() -> Lark:
    """LALR parser over the Polar grammar; statements are fed token by token."""
    return Lark(
        POLAR_GRAMMAR,
        parser="lalr",
        lexer="basic",
        start=["line", "query_term"],
        propagate_positions=True,
        maybe_placeholders=True,
    )

"""Arithmetic expression evaluation on top of the lex/parse modules.

Lines are lexed into NUMBER, LPAREN, RPAREN, PLUS, MINUS, TIMES, DIVIDE and
INVALID tokens, then parsed with this grammar, where every rule directly
computes its value instead of building a tree:

    expr   := term ((PLUS | MINUS) term)*
    term   := factor ((TIMES | DIVIDE) factor)*
    factor := PLUS factor | MINUS factor | atom
    atom   := NUMBER | LPAREN expr RPAREN

Binary operators are folded left to right, unary signs nest to the right.
Arithmetic follows IEEE-754 doubles, so division by zero gives an infinity
or NaN rather than an error.
"""
import math
import operator

from . import lex
from . import parse

# Everything callers need to catch: lex errors (InvalidNumber) and parse
# errors (UnexpectedToken, UnexpectedEnd, ...) share this base
EvalError = lex.SourceError

def parse_number(token):
    try:
        value = float(token.value)
    except ValueError:
        raise lex.InvalidNumber(token.value, info=token.info) from None
    return token.copy(value=value)

# Order matters: the first regex that matches wins, and anything that matches
# none of them becomes an INVALID token. A number is the whole run of digits
# and dots, so "1.2.3" is one bad number rather than "1.2" followed by ".3".
table = [
    ('WHITESPACE', (r'\s+', lambda t: None)),
    ('NUMBER',     (r'[0-9.]+', parse_number)),
    ('LPAREN',     r'\('),
    ('RPAREN',     r'\)'),
    ('PLUS',       r'\+'),
    ('MINUS',      r'-'),
    ('TIMES',      r'\*'),
    ('DIVIDE',     r'/'),
]
lexer = lex.Lexer(table, invalid=True)

def divide(a, b):
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)

binops = {
    '+': operator.add,
    '-': operator.sub,
    '*': operator.mul,
    '/': divide,
}

def reduce_binop(p):
    r = p[0]
    for op, value in p[1]:
        r = binops[op](r, value)
    return r

rules = [
    ['expr', ('term ((PLUS|MINUS) term)*', reduce_binop)],
    ['term', ('factor ((TIMES|DIVIDE) factor)*', reduce_binop)],
    ['factor',
        ('PLUS factor', lambda p: +p[1]),
        ('MINUS factor', lambda p: -p[1]),
        'atom'],
]

@parse.rule_fn(rules, 'atom', 'NUMBER')
def number(p):
    return p[0]

@parse.rule_fn(rules, 'atom', 'LPAREN expr RPAREN')
def parenthesized(p):
    return p[1]

parser = parse.Parser(rules, 'expr')

def tokenize(line, filename=None):
    return lexer.tokenize(line, filename)

def evaluate(tokens, lazy=False, max_depth=parse.DEFAULT_MAX_DEPTH):
    """Evaluate a token list produced by tokenize().

    Returns a float, which may be infinite or NaN. Raises UnexpectedToken,
    InvalidCharacter, UnexpectedEnd or NestingTooDeep when the tokens don't
    form an expression. With lazy=True, returns None instead of raising when
    the only problem is that the input ended too early.
    """
    filename = tokens[0].info.filename if tokens and tokens[0].info else None
    tokenizer = lex.LexerContext(tokens, filename)
    return parser.parse(tokenizer, lazy=lazy, max_depth=max_depth)

def calculate(line, filename=None, lazy=False):
    return evaluate(tokenize(line, filename), lazy=lazy)

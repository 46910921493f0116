import copy

from . import lex

# Each level of rule nesting costs a handful of Python stack frames, so this
# keeps deeply nested input well under the interpreter's recursion limit
DEFAULT_MAX_DEPTH = 150

class ParseError(lex.SourceError):
    kind = 'parse error'
    def __init__(self, msg, info=None, expected=()):
        super().__init__(msg, info=info)
        self.expected = sorted(expected)

class UnexpectedToken(ParseError):
    def __init__(self, token, info=None, expected=()):
        msg = 'unexpected token %s' % token
        if expected:
            msg += ', expected one of the following: %s' % ' '.join(sorted(expected))
        super().__init__(msg, info=info or token.info, expected=expected)
        self.token = token

class InvalidCharacter(UnexpectedToken):
    def __init__(self, token, info=None, expected=()):
        super().__init__(token, info=info, expected=expected)
        self.msg = 'invalid character %r' % token.value
        self.char = token.value

class UnexpectedEnd(ParseError):
    def __init__(self, info=None, expected=()):
        msg = 'unexpected end of input'
        if expected:
            msg += ', expected one of the following: %s' % ' '.join(sorted(expected))
        super().__init__(msg, info=info, expected=expected)

class NestingTooDeep(ParseError):
    def __init__(self, max_depth, info=None):
        super().__init__('expression nested deeper than %s levels' % max_depth, info=info)
        self.max_depth = max_depth

def merge_info_list(info):
    first = last = info
    while isinstance(first, list):
        first = next((item for item in first if item), None)
    while isinstance(last, list):
        last = next((item for item in reversed(last) if item), None)
    if first is None:
        return None
    info = copy.copy(first)
    info.length = last.length + (last.textpos - first.textpos)
    return info

# ParseResult works like a tuple for the results of parsed rules, but with an
# additional .get_info(n...) method for getting line-number information out
class ParseResult:
    def __init__(self, items, info):
        self.items = items
        self.info = info
    def __getitem__(self, n):
        return self.items[n]
    def __len__(self):
        return len(self.items)
    def get_info(self, *indices):
        info = self.info
        for index in indices:
            info = info[index]
        if isinstance(info, list):
            info = merge_info_list(info)
        return info

# Per-parse state: the rule table, the token cursor and how deep into nested
# rules we currently are
class Context:
    def __init__(self, rule_table, tokenizer, max_depth=DEFAULT_MAX_DEPTH):
        self.rule_table = rule_table
        self.tokenizer = tokenizer
        self.max_depth = max_depth
        self.depth = 0

def unzip(results):
    return [[r[i] for r in results] for i in range(2)]

# Classes to represent grammar structure. Each has a parse(ctx) method that
# returns a (value, info) pair on success, or None with the cursor put back
# where it started.

# Either a token type or the name of another rule
class Identifier:
    def __init__(self, name):
        self.name = name
    def parse(self, ctx):
        rule = ctx.rule_table.get(self.name)
        if rule is None:
            token = ctx.tokenizer.accept(self.name)
            return token and (token.value, token.info)

        ctx.depth += 1
        try:
            if ctx.depth > ctx.max_depth:
                raise NestingTooDeep(ctx.max_depth, info=ctx.tokenizer.get_max_info())
            return rule.parse(ctx)
        finally:
            ctx.depth -= 1
    def __str__(self):
        return '"%s"' % self.name

# A rule repeated at least <min_reps> times (* and + in EBNF). Matching is
# greedy and never gives back items once matched.
class Repeat:
    def __init__(self, item, min_reps=0):
        self.item = item
        self.min_reps = min_reps
    def parse(self, ctx):
        state = ctx.tokenizer.get_state()
        results = []
        while True:
            pos = ctx.tokenizer.get_state()
            item = self.item.parse(ctx)
            # Stop on items that match without consuming anything, like [x]*
            if not item or ctx.tokenizer.get_state() == pos:
                break
            results.append(item)
        if len(results) < self.min_reps:
            ctx.tokenizer.restore_state(state)
            return None
        return unzip(results)
    def __str__(self):
        return 'rep(%s)' % self.item

# Multiple consecutive rules, all of which have to match
class Sequence:
    def __init__(self, items):
        self.items = items
    def parse(self, ctx):
        state = ctx.tokenizer.get_state()
        results = []
        for item in self.items:
            result = item.parse(ctx)
            if not result:
                ctx.tokenizer.restore_state(state)
                return None
            results.append(result)
        return unzip(results)
    def __str__(self):
        return 'seq(%s)' % ','.join(map(str, self.items))

# Ordered choice: the first alternative that matches wins
class Alternation:
    def __init__(self, items):
        self.items = items
    def parse(self, ctx):
        for item in self.items:
            result = item.parse(ctx)
            if result:
                return result
        return None
    def __str__(self):
        return 'alt(%s)' % ','.join(map(str, self.items))

class Optional:
    def __init__(self, item):
        self.item = item
    def parse(self, ctx):
        return self.item.parse(ctx) or (None, None)
    def __str__(self):
        return 'opt(%s)' % self.item

# Parse a rule and hand the matched items to a user-defined function, whose
# return value becomes the value of the rule
class FnWrapper:
    def __init__(self, rule, fn):
        # The function always gets its items in a list, even for single-item rules,
        # so p[0] means the same thing everywhere
        if not isinstance(rule, Sequence):
            rule = Sequence([rule])
        self.rule = rule
        self.fn = fn
    def parse(self, ctx):
        result = self.rule.parse(ctx)
        if not result:
            return None
        items, info = result
        return (self.fn(ParseResult(items, info)), merge_info_list(info))
    def __str__(self):
        return str(self.rule)

# Mini parser for the grammar specification language (basically EBNF)

# After either a parenthesized group or an identifier, we accept * and + for
# repeating the aforementioned item (either zero or more times, or one or more)
def parse_repeat(tokenizer, repeated):
    if tokenizer.accept('STAR'):
        return Repeat(repeated)
    elif tokenizer.accept('PLUS'):
        return Repeat(repeated, min_reps=1)
    return repeated

def parse_rule_atom(tokenizer):
    if tokenizer.accept('LPAREN'):
        result = parse_rule_expr(tokenizer)
        tokenizer.expect('RPAREN')
        return parse_repeat(tokenizer, result)
    elif tokenizer.accept('LBRACKET'):
        result = Optional(parse_rule_expr(tokenizer))
        tokenizer.expect('RBRACKET')
        return result
    token = tokenizer.expect('IDENTIFIER')
    return parse_repeat(tokenizer, Identifier(token.value))

# Concatenation of one or more atoms, up to a closing bracket or a |
def parse_rule_seq(tokenizer):
    items = []
    token = tokenizer.peek()
    while token and token.type not in ('RBRACKET', 'RPAREN', 'PIPE'):
        items.append(parse_rule_atom(tokenizer))
        token = tokenizer.peek()
    if not items:
        info = token.info if token else tokenizer.get_max_info()
        raise lex.LexError('empty rule', info=info)
    # Only build a sequence for multiple items, otherwise there's way too many
    # [0]s when extracting parsed items
    if len(items) > 1:
        return Sequence(items)
    return items[0]

def parse_rule_expr(tokenizer):
    items = [parse_rule_seq(tokenizer)]
    while tokenizer.accept('PIPE'):
        items.append(parse_rule_seq(tokenizer))
    if len(items) > 1:
        return Alternation(items)
    return items[0]

rule_tokens = {
    'IDENTIFIER': r'[a-zA-Z_]+',
    'LBRACKET':   r'\[',
    'LPAREN':     r'\(',
    'PIPE':       r'\|',
    'RBRACKET':   r'\]',
    'RPAREN':     r'\)',
    'STAR':       r'\*',
    'PLUS':       r'\+',
    'WHITESPACE': (r' ', lambda t: None),
}
rule_lexer = lex.Lexer(rule_tokens)

def parse_rule(text):
    tokenizer = rule_lexer.input(text, filename='<rule>')
    rule = parse_rule_expr(tokenizer)
    token = tokenizer.peek()
    if token:
        raise lex.LexError('unbalanced %s in rule' % token.value, info=token.info)
    return rule

# Decorator to add a function to a table of rules, so that multi-statement
# handlers can sit right next to the rule they handle
def rule_fn(rule_table, name, rule):
    def wrapper(fn):
        rule_table.append([name, (rule, fn)])
        return fn
    return wrapper

class Parser:
    def __init__(self, rule_table, start):
        self.rule_table = {}
        for [name, *rules] in rule_table:
            for rule in rules:
                fn = None
                if isinstance(rule, tuple):
                    rule, fn = rule
                self.create_rule(name, rule, fn)
        # Every name starts out as an alternation so repeated names accumulate
        # choices. Unwrap the ones that ended up with a single choice.
        for name, rule in self.rule_table.items():
            if isinstance(rule, Alternation) and len(rule.items) == 1:
                self.rule_table[name] = rule.items[0]
        if start not in self.rule_table:
            raise KeyError('unknown start rule %r' % start)
        self.start = start

    def create_rule(self, name, rule, fn):
        rule = parse_rule(rule)
        if fn:
            rule = FnWrapper(rule, fn)
        # Giving two rules for one name is the same as joining them with |
        if name not in self.rule_table:
            self.rule_table[name] = Alternation([])
        self.rule_table[name].items.append(rule)

    def parse(self, tokenizer, start=None, lazy=False, max_depth=DEFAULT_MAX_DEPTH):
        rule = self.rule_table[start or self.start]
        ctx = Context(self.rule_table, tokenizer, max_depth=max_depth)
        result = rule.parse(ctx)

        if result and tokenizer.peek() is None:
            value, info = result
            return value

        # In lazy mode, input that stopped short of a full parse isn't an error yet,
        # the caller can come back with more text
        if lazy and tokenizer.got_to_end():
            return None

        # Blame the furthest token we got to: whatever came before it was accepted
        # by some rule, so that's where the input goes wrong
        token = tokenizer.get_max_token()
        expected = tokenizer.max_expected_tokens
        if token is None:
            raise UnexpectedEnd(info=tokenizer.get_max_info(), expected=expected)
        if token.type == lex.INVALID:
            raise InvalidCharacter(token, expected=expected)
        raise UnexpectedToken(token, expected=expected)

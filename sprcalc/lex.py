import copy
import re
import sys

# Token type for characters that no regex in the table accepts
INVALID = 'INVALID'

# Info means basically filename/line number, used for reporting errors
class Info:
    def __init__(self, filename, lineno=1, textpos=0, column=0, length=0):
        self.filename = filename
        self.lineno = lineno
        self.textpos = textpos
        self.column = column
        self.length = length
    def __repr__(self):
        return 'Info(%r, %s, %s, %s)' % (self.filename, self.lineno, self.column, self.length)

def get_source_line(text, info):
    start = text.rfind('\n', 0, info.textpos) + 1
    end = text.find('\n', info.textpos)
    # The last line usually has no trailing newline
    if end == -1:
        end = None
    return text[start:end]

# Base class for every error that points back into the input text
class SourceError(SyntaxError):
    kind = 'error'
    def __init__(self, msg, info=None):
        super().__init__(msg)
        self.msg = msg
        self.info = info
    def __str__(self):
        return self.msg
    def print(self, text, file=sys.stderr):
        info = self.info or Info(None, textpos=len(text), column=len(text))
        source_info = '%s(%s): ' % (info.filename, info.lineno) if info.filename else ''
        print('%s%s: %s' % (source_info, self.kind, self.msg), file=file)
        line = get_source_line(text, info)
        if line.strip():
            print(line, file=file)
            print(' ' * info.column + '^' * max(info.length, 1), file=file)

class LexError(SourceError):
    kind = 'lex error'

class InvalidNumber(LexError):
    def __init__(self, text, info=None):
        super().__init__('invalid number %r' % text, info=info)
        self.text = text

class Token:
    def __init__(self, type, value, info=None):
        self.type = type
        self.value = value
        self.info = info
    def copy(self, type=None, value=None, info=None):
        c = copy.copy(self)
        if type is not None:  c.type = type
        if value is not None: c.value = value
        if info is not None:  c.info = info
        return c
    # Position info is deliberately left out, so a token stream compares equal
    # to the same stream lexed from differently spaced text
    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return self.type == other.type and self.value == other.value
    def __hash__(self):
        return hash((self.type, self.value))
    def __str__(self):
        if self.type == INVALID:
            return 'Invalid(%s)' % self.value
        return str(self.value)
    def __repr__(self):
        return 'Token(%s, %r, info=%s)' % (self.type, self.value, self.info)

class Lexer:
    # With invalid=True, characters that no token regex matches come out as
    # single-character INVALID tokens instead of stopping the lexer.
    def __init__(self, token_list, invalid=False):
        self.invalid = invalid
        self.token_fns = {}
        # If the token list is actually a dict, sort by longest regex first
        if isinstance(token_list, dict):
            token_list = sorted(token_list.items(), key=lambda item: -len(item[1]))
        sorted_tokens = []
        for k, v in token_list:
            if isinstance(v, tuple):
                v, fn = v
                self.token_fns[k] = fn
            sorted_tokens.append([k, v])
        regex = '|'.join('(?P<%s>%s)' % (k, v) for k, v in sorted_tokens)
        self.matcher = re.compile(regex, re.MULTILINE).match

    def lex_input(self, text, filename=None):
        pos = 0
        lineno = 1
        last_newline = 0
        while pos < len(text):
            match = self.matcher(text, pos)
            if match is not None:
                type = match.lastgroup
                value = match.group(type)
                end = match.end()
            elif self.invalid:
                type = INVALID
                value = text[pos]
                end = pos + 1
            else:
                info = Info(filename, lineno, pos, pos - last_newline, 1)
                raise LexError('tokenizing error, invalid input', info=info)

            # Token functions see the position info, so they can raise errors
            # pointing at the offending text. Returning None drops the token.
            token = Token(type, value, Info(filename, lineno, pos, pos - last_newline, end - pos))
            if type in self.token_fns:
                token = self.token_fns[type](token)
            if token:
                yield token

            # Keep track of the last newline, so we know what column a given character is in
            if '\n' in value:
                lineno += value.count('\n')
                last_newline = pos + value.rfind('\n') + 1
            pos = end

    def tokenize(self, text, filename=None):
        return list(self.lex_input(text, filename))

    def input(self, text, filename=None):
        return LexerContext(self.tokenize(text, filename), filename)

# The parse cursor: an index into a fully lexed token list. Every parse gets
# its own context, the token list itself is never modified.
class LexerContext:
    def __init__(self, tokens, filename=None):
        self.tokens = list(tokens)
        self.filename = filename
        self.pos = 0

        # Track the furthest position in the token stream we got to, and the
        # set of token types that could've come next there
        self.max_pos = 0
        self.max_expected_tokens = set()

    def token_at(self, pos):
        if pos >= len(self.tokens):
            return None
        return self.tokens[pos]

    # Basic wrappers to save/restore state. Right now this is just an index into the token stream.
    def get_state(self):
        return self.pos

    def restore_state(self, state):
        self.pos = state

    def peek(self):
        return self.token_at(self.pos)

    def get_max_token(self):
        return self.token_at(self.max_pos)

    # Position info for the furthest token reached, or just past the last token
    # when the parser ran off the end of the stream
    def get_max_info(self):
        token = self.get_max_token()
        if token:
            return token.info
        if self.tokens and self.tokens[-1].info:
            last = self.tokens[-1].info
            end = last.textpos + last.length
            return Info(last.filename, last.lineno, end, last.column + last.length, 1)
        return Info(self.filename)

    # Return whether we tried to parse past the end of the token stream. Useful for interactive
    # parsing.
    def got_to_end(self):
        return self.max_pos == len(self.tokens)

    def accept(self, token_type):
        token = self.peek()

        # Before we check whether this token is acceptable to the grammar, update the
        # furthest-position info, so a failed parse can say what it expected there
        if self.pos >= self.max_pos:
            if self.pos > self.max_pos:
                self.max_pos = self.pos
                if self.max_expected_tokens:
                    self.max_expected_tokens = set()
            self.max_expected_tokens.add(token_type)

        if token and token.type == token_type:
            self.pos += 1
            return token
        return None

    def expect(self, token_type):
        token = self.accept(token_type)
        if not token:
            got = self.peek()
            raise LexError('got %s instead of %s' % (got if got else 'end of input', token_type),
                    info=got.info if got else self.get_max_info())
        return token

from .calc import EvalError, calculate, evaluate, tokenize
from .lex import InvalidNumber, LexError, SourceError, Token
from .parse import (InvalidCharacter, NestingTooDeep, ParseError,
        UnexpectedEnd, UnexpectedToken)

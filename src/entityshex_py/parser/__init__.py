"""ShExC tokenizer and parser for Wikidata EntitySchemas."""
from entityshex_py.parser.errors import ShExParseError
from entityshex_py.parser.shex_parser import (
    ParseResult,
    ShExCParser,
    parse_shex_code,
    parse_shex_file,
    try_parse_shex,
)
from entityshex_py.parser.tokenizer import ShExCTokenizer, Token, TokenType, tokenize

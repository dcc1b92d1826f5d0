"""
Tokenizer
Normalizes raw text to lowercase ASCII words and strips common French words
"""

import re
import logging
import unicodedata
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 2

# Entries may span several words; order matters and duplicates are kept.
STOP_WORDS = (
    "je", "tu", "il", "elle", "nous", "vous", "ils", "elles", "le", "la", "lui",
    "les", "nous", "vous", "leur", "eux", "celui", "celle", "celui ci", "celui la",
    "celle ci", "celle la", "ceci", "cela", "ca", "ceux", "ceux ci", "ceux la",
    "celles ci", "celles la", "le mien", "le tien", "le sien", "le notre",
    "le votre", "le leur", "la mienne", "la tienne", "la sienne", "la notre",
    "la votre", "la leur", "les miens", "les tiens", "les siens", "les notres",
    "les votres", "les leurs", "les miennes", "les tiennes", "les siennes",
    "les notres", "les votres", "les leurs", "on", "rien", "aucun", "aucune",
    "nul", "nulle", "autre", "ni", "tout", "quelqu", "quelque", "certain",
    "certaine", "certains", "certaines", "plusieurs", "tous", "autres", "qui",
    "que", "quoi", "dont", "ou", "lequel", "laquelle", "duquel", "auquel",
    "lesquels", "desquels", "auxquels", "lesquelles", "desquelles", "auxquelles",
    "apres", "avant", "avec", "chez", "concernant", "contre", "dans", "de",
    "depuis", "derriere", "des", "devant", "durant", "en", "entre", "envers",
    "hormis", "hors", "jusque", "malgre", "moyennant", "outre", "par", "parmi",
    "pendant", "pour", "pres", "sans", "sauf", "selon", "sous", "suivant", "sur",
    "touchant", "vers", "via", "a bas de", "a cause de", "a cote de", "a defaut de",
    "afin de", "a force de", "a la merci", "a la faveur de", "a l egard de",
    "a l encontre de", "a l entour de", "a l exception de", "a l instar de",
    "a l insu de", "a meme", "a moins de", "a partir de", "a raison de",
    "a seule fin de", "a travers", "au dedans de", "au defaut de", "au dehors",
    "au dessous de", "au dessus de", "au lieu de", "au moyen de", "aupres de",
    "aux environs de", "au prix de", "autour de", "aux alentours de",
    "au depens de", "avant de", "d apres", "d avec", "de façon a", "de la part de",
    "de maniere a", "d entre", "de par", "de peur de", "du cote de", "en bas de",
    "en deca de", "en dedans de", "en dehors de", "en depit de", "en face de",
    "en faveur de", "en guise de", "en outre de", "en plus de", "grace a",
    "hors de", "loin de", "lors de", "par rapport a", "par suite de", "pres de",
    "proche de", "quant a", "quitte a", "sauf a", "sous couleur de", "vis a vie de",
    "ainsi", "car", "cependant", "comme", "donc", "si", "et", "quand", "ni", "ou",
    "or", "puis", "que", "pourtant", "lorsque", "neanmoins", "toutefois", "sinon",
    "mais", "soit", "enfin", "puisque", "au reste", "au surplus", "ainsi que",
    "a moins que", "bien que", "tandis", "aussitot", "de peur", "par consequent",
    "c est a dire", "d ailleurs", "vu que", "en outre", "au contraire", "de plus",
    "de maniere", "de sorte", "parce", "alors", "ci", "ma", "ta", "sa", "mon",
    "ton", "son", "mes", "tes", "ses", "nos", "vos", "leurs", "au", "aux", "en",
    "ou", "soi", "et", "par", "etre", "pas", "sur", "plus", "te", "tu", "toi",
    "pour", "je", "me", "moi", "ce", "cet", "cette", "ces", "un", "une", "uns",
    "unes", "comme", "le", "la", "les", "qu", "que", "de", "du", "des", "dans",
    "lui", "elle", "se", "mais", "sans", "ne", "avoir", "faire", "peu", "meme",
    "non", "fois", "vers", "chez", "jusque", "tres", "quel", "quelle", "quels",
    "quelles", "devant", "ici", "oui", "trop", "chaque", "deja", "tant", "avant",
    "enfin", "ah", "voila", "tel", "fait", "est", "oh", "eh", "cas", "sont",
    "suis", "es", "etes", "ete", "sommes", "ont", "eu", "eus", "avait", "avaient",
    "etait", "etaient", "lorsqu", "peut", "peux", "peuvent", "ayant",
)

_NON_LETTERS = re.compile(r'[^a-z]')


def _stop_word_pattern(word: str):
    # The trailing space is not consumed, so back-to-back entries all match.
    return re.compile(" " + re.escape(word) + r"(?= )")


class Tokenizer:
    """Turns a byte range of the input into accepted tokens"""

    def __init__(self, stop_words: Optional[Iterable[str]] = None):
        """
        Args:
            stop_words: Entries to remove, defaults to STOP_WORDS
        """
        words = STOP_WORDS if stop_words is None else tuple(stop_words)
        self.stop_words = words
        self._patterns = [_stop_word_pattern(w) for w in dict.fromkeys(words) if w]

    @classmethod
    def from_file(cls, path: str) -> "Tokenizer":
        """Load a replacement stop-word list, one entry per line"""
        with open(path, 'r', encoding='utf-8') as f:
            words = [line.strip() for line in f if line.strip()]
        logger.info(f"Loaded {len(words)} stop words from {path}")
        return cls(words)

    def normalize(self, text: str) -> str:
        """Lowercase, fold accents to their base letter, keep only a-z and spaces."""
        text = text.lower()
        text = unicodedata.normalize('NFD', text)
        text = text.encode('ascii', 'ignore').decode('ascii')
        return _NON_LETTERS.sub(' ', text)

    def strip_stop_words(self, text: str) -> str:
        text = f" {text} "
        for pattern in self._patterns:
            text = pattern.sub(' ', text)
        return text

    def tokenize(self, data) -> List[str]:
        """
        Tokenize a chunk of input

        Args:
            data: Raw bytes (decoded as UTF-8) or an already decoded string

        Returns:
            Accepted tokens in input order, duplicates included
        """
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode('utf-8', errors='ignore')
        text = self.strip_stop_words(self.normalize(data))
        return [w for w in text.split() if len(w) >= MIN_TOKEN_LENGTH]


_default_tokenizer = None


def tokenize(data) -> List[str]:
    """Tokenize with the built-in stop-word list."""
    global _default_tokenizer
    if _default_tokenizer is None:
        _default_tokenizer = Tokenizer()
    return _default_tokenizer.tokenize(data)

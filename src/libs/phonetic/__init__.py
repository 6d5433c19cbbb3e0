# Phonetic - Sound-alike encoders

from libs.phonetic.soundex import SOUNDEX_LENGTH, encode

__all__ = ["SOUNDEX_LENGTH", "encode"]

"""Morse lookup codec used to keep text and signal forms of a message in sync."""

MORSE_MAP = {
    "A": ".-", "B": "-...", "C": "-.-.", "D": "-..", "E": ".",
    "F": "..-.", "G": "--.", "H": "....", "I": "..", "J": ".---",
    "K": "-.-", "L": ".-..", "M": "--", "N": "-.", "O": "---",
    "P": ".--.", "Q": "--.-", "R": ".-.", "S": "...", "T": "-",
    "U": "..-", "V": "...-", "W": ".--", "X": "-..-", "Y": "-.--",
    "Z": "--..", "1": ".----", "2": "..---", "3": "...--",
    "4": "....-", "5": ".....", "6": "-....", "7": "--...",
    "8": "---..", "9": "----.", "0": "-----",
    " ": "/",
}

REVERSE_MORSE = {code: char for char, code in MORSE_MAP.items()}


def encode(text: str) -> str:
    """Encode text as space separated Morse codes. Unsupported characters are dropped."""
    codes = [MORSE_MAP[char] for char in text.upper() if char in MORSE_MAP]
    return " ".join(codes)


def decode(signal: str) -> str:
    """Decode space separated Morse codes. Unknown codes are dropped."""
    return "".join(REVERSE_MORSE.get(code, "") for code in signal.split(" "))

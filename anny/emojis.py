"""Emoji strings used in the bot's messages."""

PING_PONG = "\U0001f3d3"

PEER = "<:KannaPeer:838567821205176340>"
YEAH = "<:yeah:838568353139916850>"
CRY = "<:pepebugado:913080535914512394>"
LOADING = "<a:1180staff:836709984909525032>"
SLEEP = "<:keqingsleep:909567537778421810>"
OK = "<:catok:913081364503470080>"

TWITCH = "<:twitch:896600475833606154>"
YOUTUBE = "<:youtube:896600900909559868>"

ANIMATED_STAFF = "<a:1180staff:836709984909525032>"
ANIMATED_HYPE = "<a:hypejump:913079244593168394>"
ANIMATED_BONK = "<a:bonk:925364127524847656>"

_KEYCAP = "\u20e3"
_KEYCAP_TEN = "\U0001f51f"


def number_as_emoji(number: int) -> str:
    """Return the keycap emoji for 0-10, or an empty string for anything else."""
    if number == 10:
        return _KEYCAP_TEN
    if 0 <= number <= 9:
        return f"{number}{_KEYCAP}"
    return ""
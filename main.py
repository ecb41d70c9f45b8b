from rich.pretty import pprint

from commandeer import *

channel = ConsoleChannel(prefix="!", fancy=True)


@channel.manager.command("roll", aliases=["dice"])
def roll(
        count: int = Param(default="1"),
        sides: int = Param(default="6"),
        /,
        label: str | None = Param(descr="printed before the result"),
):
    """Roll some dice."""
    return f"{label + ': ' if label else ''}{count}d{sides}"


if __name__ == '__main__':
    pprint(roll)
    sender = ConsoleSender()
    channel.enable()
    channel.parse_input(sender, "!help")
    channel.parse_input(sender, "!roll 2 --sides=20 -l attack")
    channel.parse_input(sender, "!roll two")

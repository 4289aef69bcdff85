import sys

from rich.pretty import pprint

from helmsman import *

app = App(
    "demo",
    usage="helmsman demo application",
    version="0.1.0",
    authors="Helmsman developers",
    buildinfo="branch:main commit:0000000",
    flags=[Flag("v, verbose", bool, usage="verbose output")],
)


@app.command("g, greet", usage="greet someone", flags=[Flag("n, name", default="world", usage="who to greet")])
def greet(ctx):
    ctx.stdout.print("hello, %s" % ctx.get_string("name"))
    if ctx.get_bool("verbose"):
        pprint(ctx.args)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        pprint(app)
    app.run()

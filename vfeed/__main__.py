from vfeed.cli import app

app(prog_name="vfeed")

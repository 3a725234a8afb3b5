from devgate.cli import app

app(prog_name="devgate")

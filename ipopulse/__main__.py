from ipopulse.cli.main import app

app(prog_name="ipopulse")

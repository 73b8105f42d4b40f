from freeload.cli import app

app(prog_name="freeload")

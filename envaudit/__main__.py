from envaudit.cli.app import app

app()

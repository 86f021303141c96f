from scoresync.cli import app

app()

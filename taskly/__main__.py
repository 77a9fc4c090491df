from taskly.main import run

run()

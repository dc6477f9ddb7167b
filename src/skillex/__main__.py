from skillex.main import run

run()

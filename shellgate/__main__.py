from shellgate.cli import run

run()

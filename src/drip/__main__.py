from drip.main import run

run()

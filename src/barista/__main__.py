from barista.main import run

run()

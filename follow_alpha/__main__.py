from follow_alpha.main import run

run()

from sec1_sast.cli import app

app(prog_name="sec1-sast")

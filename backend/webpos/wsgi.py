# WSGI entrypoint: `flask --app webpos.wsgi run`
from webpos import create_app

app = create_app()

from app.dashboard import create_app

app = create_app()

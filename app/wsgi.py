from app.alumnet import create_app

app = create_app()

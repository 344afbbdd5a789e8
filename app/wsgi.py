from app.lorewiki import create_app

app = create_app()

from app.clubdesk import create_app

app = create_app()

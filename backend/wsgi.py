from warehub import create_app

app = create_app()

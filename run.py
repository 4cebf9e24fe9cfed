import os

from esg_manager import create_app

app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", "3001"))
    app.run(debug=app.config["APP_ENV"] == "development", host="0.0.0.0", port=port)

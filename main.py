from flask import Flask, render_template
import os
import logging
from dotenv import load_dotenv

from gost_expert.services.property_store import JsonFilePropertyStore, GEMINI_API_KEY, LOG_SHEET_ID
from gost_expert.services.gemini_client import GeminiClient, DEFAULT_API_URL
from gost_expert.services.usage_logger import UsageLogger
from gost_expert.services.expert_service import ExpertService
from gost_expert.routes.api_routes import api_bp

print("\n=== DEBUG APP INITIALIZATION ===")

# Load environment variables
load_dotenv()
print(f"DEBUG: .env file loaded")

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO'),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)

APP_TITLE = 'Вова-Стандарт: Анализ и Консультации'

app = Flask(__name__, static_folder='gost_expert/static', template_folder='gost_expert/templates')
app.secret_key = os.getenv('SECRET_KEY', 'dev-secret-key')
print(f"DEBUG: Flask app created")

# Gemini configuration
app.config['GEMINI_API_URL'] = os.getenv('GEMINI_API_URL', DEFAULT_API_URL)
app.config['HTTP_TIMEOUT'] = float(os.getenv('HTTP_TIMEOUT', '120'))

# Property store (API key, log sheet id, long-term memory)
app.config['PROPERTY_STORE_PATH'] = os.getenv('PROPERTY_STORE_PATH', 'instance/properties.json')

property_store = JsonFilePropertyStore(app.config['PROPERTY_STORE_PATH'])
print(f"DEBUG: PROPERTY_STORE_PATH: {app.config['PROPERTY_STORE_PATH']}")
print(f"DEBUG: GEMINI_API_URL: {app.config['GEMINI_API_URL']}")
print(f"DEBUG: GEMINI_API_KEY: {'SET' if property_store.get_property(GEMINI_API_KEY) else 'None'}")
print(f"DEBUG: LOG_SHEET_ID: {'SET' if property_store.get_property(LOG_SHEET_ID) else 'None'}")

gemini_client = GeminiClient(
    property_store,
    api_url=app.config['GEMINI_API_URL'],
    timeout=app.config['HTTP_TIMEOUT']
)
app.extensions['expert_service'] = ExpertService(
    property_store,
    gemini_client,
    usage_logger=UsageLogger(property_store)
)

app.register_blueprint(api_bp)


@app.route('/')
def index():
    """Render the chat and analysis UI"""
    return render_template('index.html', title=APP_TITLE)


if __name__ == '__main__':
    app.run(debug=True)

"""
Run the Flask app with Waitress WSGI server (production-grade, no reloader)
"""
import os
from waitress import serve
from main import app

if __name__ == '__main__':
    port = int(os.getenv('PORT', '5000'))

    print("\n" + "="*70)
    print("Starting Вова-Стандарт with Waitress WSGI Server")
    print("="*70 + "\n")

    # Concurrent requests share the property store without locking
    serve(app, host='0.0.0.0', port=port, threads=4)

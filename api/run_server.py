"""
Client Portal Server Launcher
Starts the Django development server and prints the portal's main endpoints
"""
import os
import sys
import socket

project_path = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_path)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'core.settings')


def get_local_ip():
    """Get the local IP address for network access"""
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"


def print_startup_info(port: int):
    local_ip = get_local_ip()
    base = f"http://127.0.0.1:{port}"

    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    BOLD = '\033[1m'
    RESET = '\033[0m'

    print()
    print(f"{BOLD}{GREEN}{'='*60}{RESET}")
    print(f"{BOLD}{GREEN}  Client Portal API - Debug Mode{RESET}")
    print(f"{BOLD}{GREEN}{'='*60}{RESET}")
    print()

    print(f"{BOLD}{CYAN}Server URLs:{RESET}")
    print(f"   Local:      {base}")
    if local_ip != "127.0.0.1":
        print(f"   Network:    http://{local_ip}:{port}")
    print()

    print(f"{BOLD}{YELLOW}Authentication:{RESET}")
    print(f"   Sign up:       POST {base}/api/v1/auth/signup/")
    print(f"   JWT Login:     POST {base}/api/v1/auth/token/")
    print(f"   JWT Refresh:   POST {base}/api/v1/auth/token/refresh/")
    print()

    print(f"{BOLD}{BLUE}API Documentation:{RESET}")
    print(f"   Swagger UI:    {base}/api/docs/")
    print(f"   ReDoc:         {base}/api/redoc/")
    print()

    print(f"{BOLD}{CYAN}Portal Endpoints:{RESET}")
    print(f"   Health:        {base}/api/v1/health/")
    print(f"   Accounts:      {base}/api/v1/accounts/")
    print(f"   Partners:      {base}/api/v1/partners/")
    print(f"   Consents:      {base}/api/v1/consents/required/")
    print(f"   Payments:      {base}/api/v1/payments/settings/")
    print(f"   Stripe hook:   POST {base}/api/v1/webhooks/stripe/")
    print()

    print(f"{BOLD}{YELLOW}CORS:{RESET}")
    print("   Add the frontend URL to CORS_ALLOWED_ORIGINS in .env")
    print()
    print(f"{GREEN}{'='*60}{RESET}")
    print()


if __name__ == '__main__':
    port = 8001
    host = '0.0.0.0'

    args = sys.argv[1:]
    if len(args) >= 1 and args[0].isdigit():
        port = int(args[0])

    print_startup_info(port)

    from django.core.management import execute_from_command_line
    execute_from_command_line(['manage.py', 'runserver', f'{host}:{port}'])

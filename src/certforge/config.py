import os
from dotenv import load_dotenv

load_dotenv()

# Signing backend profile: openssl|pkcs8
# openssl accepts legacy SEC1/PKCS#1 keys, P-521 and RSA generation; pkcs8 does not.
BACKEND = os.getenv("CERTFORGE_BACKEND", "openssl").strip().lower()

LOG_LEVEL = os.getenv("CERTFORGE_LOG_LEVEL", "INFO").strip().upper()

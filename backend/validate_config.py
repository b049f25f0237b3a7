#!/usr/bin/env python3
"""
Configuration Validation Script
Validates that all required environment variables are set correctly
"""
import os
import sys
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def validate_config():
    """Validate configuration"""
    print("Validating configuration...\n")

    errors = []
    warnings = []

    auth_mode = os.getenv('AUTH_MODE', 'demo')
    print("AUTH_MODE:", auth_mode)

    if auth_mode == 'authenticated':
        if not os.getenv('FIREBASE_PROJECT_ID'):
            errors.append("FIREBASE_PROJECT_ID is required when AUTH_MODE=authenticated")
        else:
            print("FIREBASE_PROJECT_ID is set")
    elif auth_mode == 'demo':
        print("DEMO_USER_ID:", os.getenv('DEMO_USER_ID', 'mock-user-001'))
        if not os.getenv('DEMO_GOOGLE_ACCESS_TOKEN'):
            warnings.append(
                "DEMO_GOOGLE_ACCESS_TOKEN not set (sheet reads need an X-Google-Access-Token header)"
            )
        else:
            print("DEMO_GOOGLE_ACCESS_TOKEN is set")
    else:
        errors.append(f"AUTH_MODE must be 'authenticated' or 'demo'. Got: {auth_mode}")

    ai_provider = os.getenv('AI_PROVIDER', 'openai')
    print("AI_PROVIDER:", ai_provider)

    if ai_provider == 'openai':
        api_key = os.getenv('OPENAI_API_KEY')
        if not api_key or api_key == 'your-openai-api-key':
            warnings.append("OPENAI_API_KEY not set (chat disabled)")
        else:
            print("OPENAI_API_KEY is set")
    elif ai_provider == 'azure':
        for key in ('AZURE_OPENAI_ENDPOINT', 'AZURE_OPENAI_KEY', 'AZURE_OPENAI_DEPLOYMENT'):
            if not os.getenv(key):
                warnings.append(f"{key} not set (chat disabled)")
            else:
                print(f"{key} is set")
    else:
        errors.append(f"AI_PROVIDER must be 'openai' or 'azure'. Got: {ai_provider}")

    ttl = os.getenv('SHEET_CACHE_TTL_SECONDS', '300')
    if not ttl.isdigit():
        errors.append(f"SHEET_CACHE_TTL_SECONDS must be a whole number of seconds. Got: {ttl}")
    else:
        print(f"Sheet cache TTL: {ttl}s")

    print("\n" + "="*60)
    if warnings:
        print("\nWARNINGS:")
        for w in warnings:
            print(" ", w)
    if errors:
        print("\nERRORS:")
        for e in errors:
            print(" ", e)
        print("\nValidation failed. Fix errors above.\n")
        return False
    print("\nValidation passed.\n")
    return True


if __name__ == "__main__":
    success = validate_config()
    sys.exit(0 if success else 1)

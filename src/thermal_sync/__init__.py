"""
Thermal Recording Sync agent package.

This package contains the field service that:
- discovers thermal cameras advertised over mDNS / DNS-SD
- downloads their pending recordings over HTTP
- deletes each recording from the camera once it is safely on local disk
- reflects activity on the board's status LED
"""

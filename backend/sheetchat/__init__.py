"""SheetChat: chat with a Google Sheet and write AI-proposed edits back"""

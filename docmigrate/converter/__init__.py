"""Structural conversion of exported help-authoring HTML into target documentation markup."""

"""
Container image build and registry publishing.
"""
